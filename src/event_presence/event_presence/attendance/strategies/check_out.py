from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from ...common.datetime_utils import seconds_between
from ...core.enums import ScanAction, ScanType, SessionStatus
from ...core.exceptions import DuplicateScanWithinDebounceWindow, SessionConflict
from ...database.unit_of_work import Transaction
from .. import aggregate
from ..model import AttendanceSession
from .base import ScanDecision, ScanStrategy


class CheckOutStrategy(ScanStrategy):
    """An open session exists: close it and credit its duration."""

    action = ScanAction.OUT

    def apply(
        self,
        tx: Transaction,
        *,
        participant_id: int,
        event_id: int,
        open_session: Optional[AttendanceSession],
        now: datetime,
    ) -> ScanDecision:
        if open_session is None:
            raise SessionConflict("No open session to check out of")

        minimum = self._policy.min_checkout_seconds
        elapsed = seconds_between(open_session.check_in_time, now)
        if minimum and elapsed < minimum:
            raise DuplicateScanWithinDebounceWindow(
                f"Checked in {elapsed} seconds ago. Please wait at least {minimum} seconds before checking out.",
                scan_type=ScanType.CHECK_OUT,
            )

        # check_out_time >= check_in_time even if the clock went backwards
        check_out_time = max(now, open_session.check_in_time)
        if not tx.sessions.close_session(session_id=open_session.session_id, check_out_time=check_out_time):
            raise SessionConflict("Session was closed by another operation")

        duration = seconds_between(open_session.check_in_time, check_out_time)
        aggregate.apply_valid_session(
            tx.summaries,
            participant_id=participant_id,
            event_id=event_id,
            duration_seconds=duration,
            at=check_out_time,
        )
        closed = replace(open_session, check_out_time=check_out_time, status=SessionStatus.CHECKED_OUT)
        return ScanDecision(action=ScanAction.OUT, session=closed, duration_seconds=duration)
