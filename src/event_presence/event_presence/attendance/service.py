from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..common.validators import parse_optional_int
from ..core.enums import LockMode, ScanAction, ScanOutcome, ScanType, TokenKind
from ..core.exceptions import (
    DuplicateScanWithinDebounceWindow,
    EventNotActive,
    EventNotFound,
    InvalidToken,
    ParticipantNotFound,
    ValidationError,
)
from ..database.unit_of_work import UnitOfWork
from ..operators.model import Operator
from ..participants.model import Participant
from ..participants.repository import ParticipantRepository
from ..scanlogs.model import NewScanLog
from ..tokens.verifier import ScanTokenVerifier
from .factory import ScanStrategyFactory
from .model import AttendanceSession

logger = logging.getLogger(__name__)

_HINT_TYPES = frozenset({ScanType.CHECK_IN, ScanType.CHECK_OUT})


@dataclass(frozen=True)
class ScanRequest:
    token: str
    operator: Operator
    # Raw client value; parsed by the processor so a bad id is still audited.
    event_id: object = None
    gate: Optional[str] = None
    scan_type: Optional[str] = None


@dataclass(frozen=True)
class ScanResult:
    action: ScanAction
    participant: Participant
    session: AttendanceSession
    duration_seconds: Optional[int]
    scan_log_id: int

    @property
    def message(self) -> str:
        if self.action is ScanAction.IN:
            return f"{self.participant.full_name} checked in"
        return f"{self.participant.full_name} checked out after {self.duration_seconds} seconds"

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "message": self.message,
            "participant": self.participant.to_dict(),
            "session": self.session.to_dict(),
            "durationSeconds": self.duration_seconds,
            "scanLogId": self.scan_log_id,
        }


def parse_scan_type_hint(value: object) -> Optional[ScanType]:
    """Scanner UIs may send which button was pressed; it is recorded, never obeyed."""
    if value is None or value == "":
        return None
    try:
        hint = ScanType(value)
    except ValueError:
        raise ValidationError(f"scanType must be one of: check-in, check-out (got {value!r})")
    if hint not in _HINT_TYPES:
        raise ValidationError(f"scanType must be one of: check-in, check-out (got {value!r})")
    return hint


class _Attempt:
    """What is known about a scan so far, for the failure audit record."""

    def __init__(self):
        self.participant_id: Optional[int] = None
        self.event_id: Optional[int] = None
        self.scan_type = ScanType.OTHER


class ScanProcessor:
    """Turn one QR scan into a check-in or a check-out.

    The decision is a pure toggle over the session ledger, made while holding
    the per-(participant, event) row lock, so concurrent scans of the same
    participant serialize and scans of different participants do not block
    each other. Every scan leaves exactly one audit record: ``success`` in the
    same transaction as the ledger write, or ``failed`` in its own
    transaction after the rollback.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        participants: ParticipantRepository,
        verifier: ScanTokenVerifier,
        *,
        strategy_factory: ScanStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._uow = uow
        self._participants = participants
        self._verifier = verifier
        self._factory = strategy_factory or ScanStrategyFactory()
        self._clock = clock

    def process(self, request: ScanRequest, *, now: datetime | None = None) -> ScanResult:
        # DATETIME columns carry whole seconds.
        now = (now or self._clock()).replace(microsecond=0)
        attempt = _Attempt()

        try:
            attempt.event_id = parse_optional_int(request.event_id, "eventId")
            hint = parse_scan_type_hint(request.scan_type)
            if hint is not None:
                attempt.scan_type = hint
            return self._process(request, attempt, now)
        except Exception as exc:
            if isinstance(exc, DuplicateScanWithinDebounceWindow) and exc.scan_type is not None:
                attempt.scan_type = exc.scan_type
            self._record_failure(request, attempt, exc, now)
            raise

    def _process(self, request: ScanRequest, attempt: _Attempt, now: datetime) -> ScanResult:
        identity = self._verifier.verify(request.token, expected_event_id=attempt.event_id)
        if identity.kind is not TokenKind.PARTICIPANT:
            raise InvalidToken("This QR code does not identify a participant")
        attempt.event_id = identity.event_id

        participant = self._participants.get_by_id(identity.subject_id)
        if participant is None or not participant.can_attend:
            raise ParticipantNotFound(f"Participant {identity.subject_id} not found")
        attempt.participant_id = participant.participant_id

        pid, eid = participant.participant_id, identity.event_id
        with self._uow.begin() as tx:
            # Shared lock: a concurrent force_end waits for in-flight scans.
            event = tx.events.get(eid, lock=LockMode.SHARE)
            if event is None:
                raise EventNotFound(f"Event {eid} not found")
            if not event.accepts_scans(now):
                raise EventNotActive(f"Event {event.name!r} is not accepting scans")

            tx.summaries.lock_pair(pid, eid)
            open_session = tx.sessions.find_open(pid, eid)
            strategy = self._factory.for_open_session(open_session)
            attempt.scan_type = strategy.action.scan_type

            decision = strategy.apply(tx, participant_id=pid, event_id=eid, open_session=open_session, now=now)
            scan_log_id = tx.scan_logs.append(
                NewScanLog(
                    scan_time=now,
                    scan_type=decision.action.scan_type,
                    status=ScanOutcome.SUCCESS,
                    operator_id=request.operator.operator_id,
                    operator_type=request.operator.operator_type,
                    participant_id=pid,
                    event_id=eid,
                    gate=request.gate,
                )
            )

        logger.info(
            "scan %s: participant=%s event=%s operator=%s:%s",
            decision.action.value,
            pid,
            eid,
            request.operator.operator_type.value,
            request.operator.operator_id,
        )
        return ScanResult(
            action=decision.action,
            participant=participant,
            session=decision.session,
            duration_seconds=decision.duration_seconds,
            scan_log_id=scan_log_id,
        )

    def _record_failure(self, request: ScanRequest, attempt: _Attempt, exc: Exception, now: datetime) -> None:
        logger.info("scan rejected: %s: %s", type(exc).__name__, exc)
        entry = NewScanLog(
            scan_time=now,
            scan_type=attempt.scan_type,
            status=ScanOutcome.FAILED,
            operator_id=request.operator.operator_id,
            operator_type=request.operator.operator_type,
            participant_id=attempt.participant_id,
            event_id=attempt.event_id,
            gate=request.gate,
            error_message=str(exc) or type(exc).__name__,
        )
        try:
            with self._uow.begin() as tx:
                tx.scan_logs.append(entry)
        except Exception:
            # The caller still gets the original error.
            logger.exception("could not record failed scan for participant %s", attempt.participant_id)
