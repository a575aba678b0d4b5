from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .analytics.mysql_analytics_repository import MySQLAnalyticsRepository
from .analytics.repository import AnalyticsRepository
from .analytics.service import AnalyticsService
from .attendance.aggregate import SummaryReconciler
from .attendance.factory import ScanStrategyFactory
from .attendance.service import ScanProcessor
from .attendance.strategies.base import DebouncePolicy
from .core.constants import (
    DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS,
    DEFAULT_MIN_CHECKOUT_SECONDS,
    DEFAULT_OPERATOR_CACHE_TTL_SECONDS,
    DEFAULT_RECHECKIN_COOLDOWN_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_unit_of_work import MySQLUnitOfWork
from .database.unit_of_work import UnitOfWork
from .events.service import EventLifecycleService
from .operators.mysql_operator_repository import MySQLOperatorRepository
from .operators.service import OperatorService
from .participants.mysql_participant_repository import MySQLParticipantRepository
from .participants.repository import ParticipantRepository
from .scanlogs.service import ScanLogService
from .tokens.verifier import ScanTokenVerifier


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    uow: UnitOfWork

    participants_repo: ParticipantRepository
    analytics_repo: AnalyticsRepository

    verifier: ScanTokenVerifier
    operator_service: OperatorService
    scan_processor: ScanProcessor
    lifecycle_service: EventLifecycleService
    scan_log_service: ScanLogService
    analytics_service: AnalyticsService
    reconciler: SummaryReconciler


def build_container(
    *,
    db_config: dict,
    qr_secret: str,
    qr_token_leeway_seconds: int = 0,
    lock_wait_timeout_seconds: int = DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS,
    min_checkout_seconds: int = DEFAULT_MIN_CHECKOUT_SECONDS,
    recheckin_cooldown_seconds: int = DEFAULT_RECHECKIN_COOLDOWN_SECONDS,
    operator_cache_ttl_seconds: int = DEFAULT_OPERATOR_CACHE_TTL_SECONDS,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)
    uow = MySQLUnitOfWork(conn, lock_wait_timeout=lock_wait_timeout_seconds)

    participants_repo = MySQLParticipantRepository(conn)
    operators_repo = MySQLOperatorRepository(conn)
    analytics_repo = MySQLAnalyticsRepository(conn)

    verifier = ScanTokenVerifier(qr_secret, leeway_seconds=qr_token_leeway_seconds)
    policy = DebouncePolicy(
        min_checkout_seconds=int(min_checkout_seconds),
        recheckin_cooldown_seconds=int(recheckin_cooldown_seconds),
    )

    return Container(
        conn=conn,
        uow=uow,
        participants_repo=participants_repo,
        analytics_repo=analytics_repo,
        verifier=verifier,
        operator_service=OperatorService(operators_repo, cache_ttl_seconds=operator_cache_ttl_seconds),
        scan_processor=ScanProcessor(
            uow,
            participants_repo,
            verifier,
            strategy_factory=ScanStrategyFactory(policy=policy),
        ),
        lifecycle_service=EventLifecycleService(uow),
        scan_log_service=ScanLogService(uow),
        analytics_service=AnalyticsService(analytics_repo),
        reconciler=SummaryReconciler(uow),
    )
