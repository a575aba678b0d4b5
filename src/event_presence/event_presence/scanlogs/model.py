from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import OperatorType, ScanOutcome, ScanType


@dataclass(frozen=True)
class NewScanLog:
    """Audit record about to be appended."""

    scan_time: datetime
    scan_type: ScanType
    status: ScanOutcome
    operator_id: int
    operator_type: OperatorType
    participant_id: Optional[int] = None
    event_id: Optional[int] = None
    gate: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class ScanLogEntry:
    scan_log_id: int
    scan_time: datetime
    scan_type: ScanType
    status: ScanOutcome
    operator_id: int
    operator_type: OperatorType
    participant_id: Optional[int]
    event_id: Optional[int]
    gate: Optional[str] = None
    error_message: Optional[str] = None
    flagged: bool = False
    flag_reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.scan_log_id,
            "scanTime": self.scan_time.isoformat(),
            "scanType": self.scan_type.value,
            "status": self.status.value,
            "operator": {"id": self.operator_id, "type": self.operator_type.value},
            "participantId": self.participant_id,
            "eventId": self.event_id,
            "gate": self.gate,
            "errorMessage": self.error_message,
            "flagged": self.flagged,
            "flagReason": self.flag_reason,
        }


@dataclass(frozen=True)
class ScanLogFilter:
    event_id: Optional[int] = None
    participant_id: Optional[int] = None
    scan_type: Optional[ScanType] = None
    status: Optional[ScanOutcome] = None
    operator_type: Optional[OperatorType] = None
