from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_SCAN_LOG_LIMIT
from ..core.enums import OperatorType, ScanOutcome, ScanType
from ..core.exceptions import ScanLogNotFound, ValidationError
from ..database.unit_of_work import UnitOfWork
from .model import ScanLogEntry, ScanLogFilter

logger = logging.getLogger(__name__)


def _parse_enum(enum_cls, value: object, field_name: str):
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


class ScanLogService:
    """Read and annotate the scan audit trail."""

    def __init__(self, uow: UnitOfWork):
        self._uow = uow

    def list_logs(
        self,
        *,
        event_id: Optional[int] = None,
        participant_id: Optional[int] = None,
        scan_type: object = None,
        status: object = None,
        operator_type: object = None,
        offset: int = 0,
        limit: int = DEFAULT_SCAN_LOG_LIMIT,
    ) -> list[ScanLogEntry]:
        flt = ScanLogFilter(
            event_id=event_id,
            participant_id=participant_id,
            scan_type=_parse_enum(ScanType, scan_type, "scanType"),
            status=_parse_enum(ScanOutcome, status, "status"),
            operator_type=_parse_enum(OperatorType, operator_type, "operatorType"),
        )
        with self._uow.begin() as tx:
            return list(tx.scan_logs.list(flt, offset=offset, limit=limit))

    def flag(self, scan_log_id: int, *, reason: str) -> ScanLogEntry:
        reason = require_non_empty(reason, "reason")
        with self._uow.begin() as tx:
            if tx.scan_logs.get(scan_log_id) is None:
                raise ScanLogNotFound(f"Scan log {scan_log_id} not found")
            tx.scan_logs.flag(scan_log_id, reason=reason)
            entry = tx.scan_logs.get(scan_log_id)

        logger.info("scan log %s flagged: %s", scan_log_id, reason)
        return entry
