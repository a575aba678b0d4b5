from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import seconds_between
from ...core.enums import ScanAction, ScanType, SessionStatus
from ...core.exceptions import DuplicateScanWithinDebounceWindow
from ...database.unit_of_work import Transaction
from .. import aggregate
from ..model import AttendanceSession
from .base import ScanDecision, ScanStrategy


class CheckInStrategy(ScanStrategy):
    """No open session: start a new one."""

    action = ScanAction.IN

    def apply(
        self,
        tx: Transaction,
        *,
        participant_id: int,
        event_id: int,
        open_session: Optional[AttendanceSession],
        now: datetime,
    ) -> ScanDecision:
        cooldown = self._policy.recheckin_cooldown_seconds
        if cooldown:
            last = tx.sessions.latest_closed(participant_id, event_id)
            if last and last.status is SessionStatus.CHECKED_OUT and last.check_out_time:
                elapsed = seconds_between(last.check_out_time, now)
                if elapsed < cooldown:
                    raise DuplicateScanWithinDebounceWindow(
                        f"Checked out {elapsed} seconds ago. Please wait {cooldown} seconds before checking in again.",
                        scan_type=ScanType.CHECK_IN,
                    )

        session = tx.sessions.open_session(participant_id=participant_id, event_id=event_id, check_in_time=now)
        aggregate.mark_checked_in(tx.summaries, participant_id=participant_id, event_id=event_id, at=now)
        return ScanDecision(action=ScanAction.IN, session=session)
