from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import PresenceStatus, SessionStatus


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one check-in/check-out cycle of a participant at an event."""

    session_id: int
    participant_id: int
    event_id: int
    check_in_time: datetime
    check_out_time: Optional[datetime]
    status: SessionStatus
    is_nullified: bool = False
    nullified_duration: Optional[int] = None
    nullified_reason: Optional[str] = None
    event_stop_time: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status is SessionStatus.CHECKED_IN

    @property
    def duration_seconds(self) -> Optional[int]:
        """Valid duration of a normally closed session, None otherwise."""
        if self.status is not SessionStatus.CHECKED_OUT or self.check_out_time is None:
            return None
        return max(0, int((self.check_out_time - self.check_in_time).total_seconds()))

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "participantId": self.participant_id,
            "eventId": self.event_id,
            "checkInTime": self.check_in_time.isoformat(),
            "checkOutTime": self.check_out_time.isoformat() if self.check_out_time else None,
            "status": self.status.value,
            "isNullified": self.is_nullified,
            "nullifiedDuration": self.nullified_duration,
            "nullifiedReason": self.nullified_reason,
            "eventStopTime": self.event_stop_time.isoformat() if self.event_stop_time else None,
        }


@dataclass(frozen=True)
class AttendanceSummary:
    """Running per-event totals for one participant.

    Derived from the ledger; never consulted to decide whether a participant
    is currently inside.
    """

    event_id: int
    participant_id: int
    total_valid_duration: int = 0
    total_nullified_duration: int = 0
    total_sessions: int = 0
    nullified_sessions: int = 0
    last_check_in_time: Optional[datetime] = None
    current_status: PresenceStatus = PresenceStatus.CHECKED_OUT
    has_improper_checkouts: bool = False
    last_activity_date: Optional[date] = None


@dataclass(frozen=True)
class LedgerTotals:
    """Totals recomputed from the session ledger for reconciliation."""

    event_id: int
    participant_id: int
    total_valid_duration: int
    total_nullified_duration: int
    total_sessions: int
    nullified_sessions: int
    has_open_session: bool


@dataclass(frozen=True)
class SummaryDrift:
    event_id: int
    participant_id: int
    field: str
    stored: object
    expected: object
