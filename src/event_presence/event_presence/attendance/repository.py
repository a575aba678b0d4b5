from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceSession, AttendanceSummary, LedgerTotals


class SessionLedger(Protocol):
    """Attendance ledger bound to an open transaction."""

    def find_open(self, participant_id: int, event_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def latest_closed(self, participant_id: int, event_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def open_session(self, *, participant_id: int, event_id: int, check_in_time: datetime) -> AttendanceSession:
        """Insert a checked-in session.

        Raises SessionConflict if another open session exists for the pair.
        """

        raise NotImplementedError

    def close_session(self, *, session_id: int, check_out_time: datetime) -> bool:
        raise NotImplementedError

    def list_open_for_event(self, event_id: int, *, lock: bool = False) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def auto_close(
        self,
        *,
        session_id: int,
        stop_time: datetime,
        nullified_duration: int,
        reason: str,
    ) -> bool:
        raise NotImplementedError

    def totals_for_event(self, event_id: int) -> Sequence[LedgerTotals]:
        raise NotImplementedError


class SummaryStore(Protocol):
    """Aggregate store bound to an open transaction.

    Every write is an upsert whose arithmetic happens in the store itself.
    """

    def lock_pair(self, participant_id: int, event_id: int) -> None:
        """Take the per-(participant, event) row lock, creating the row if needed."""

        raise NotImplementedError

    def list_for_event(self, event_id: int) -> Sequence[AttendanceSummary]:
        raise NotImplementedError

    def record_check_in(
        self, *, participant_id: int, event_id: int, check_in_time: datetime, activity_date: date
    ) -> None:
        raise NotImplementedError

    def add_valid_session(
        self, *, participant_id: int, event_id: int, duration_seconds: int, activity_date: date
    ) -> None:
        raise NotImplementedError

    def add_nullified_session(
        self, *, participant_id: int, event_id: int, duration_seconds: int, activity_date: date
    ) -> None:
        raise NotImplementedError
