"""Aggregate store maintenance.

The per-(event, participant) summary is only ever moved by increments that
run inside the same transaction as the ledger write that caused them. The
reconciler recomputes the same numbers from the ledger to detect drift.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from ..core.enums import PresenceStatus
from ..database.unit_of_work import UnitOfWork
from .model import AttendanceSummary, LedgerTotals, SummaryDrift
from .repository import SummaryStore

logger = logging.getLogger(__name__)

_RECONCILED_FIELDS = (
    "total_valid_duration",
    "total_nullified_duration",
    "total_sessions",
    "nullified_sessions",
)


def _require_duration(duration_seconds: int) -> int:
    duration = int(duration_seconds)
    if duration < 0:
        raise ValueError(f"duration must be non-negative, got {duration}")
    return duration


def mark_checked_in(summaries: SummaryStore, *, participant_id: int, event_id: int, at: datetime) -> None:
    summaries.record_check_in(
        participant_id=participant_id,
        event_id=event_id,
        check_in_time=at,
        activity_date=at.date(),
    )


def apply_valid_session(
    summaries: SummaryStore, *, participant_id: int, event_id: int, duration_seconds: int, at: datetime
) -> None:
    summaries.add_valid_session(
        participant_id=participant_id,
        event_id=event_id,
        duration_seconds=_require_duration(duration_seconds),
        activity_date=at.date(),
    )


def apply_nullified_session(
    summaries: SummaryStore, *, participant_id: int, event_id: int, duration_seconds: int, at: datetime
) -> None:
    summaries.add_nullified_session(
        participant_id=participant_id,
        event_id=event_id,
        duration_seconds=_require_duration(duration_seconds),
        activity_date=at.date(),
    )


def compare(summary: AttendanceSummary, totals: LedgerTotals) -> list[SummaryDrift]:
    drift = [
        SummaryDrift(
            event_id=totals.event_id,
            participant_id=totals.participant_id,
            field=name,
            stored=getattr(summary, name),
            expected=getattr(totals, name),
        )
        for name in _RECONCILED_FIELDS
        if getattr(summary, name) != getattr(totals, name)
    ]
    expected_status = PresenceStatus.CHECKED_IN if totals.has_open_session else PresenceStatus.CHECKED_OUT
    if summary.current_status is not expected_status:
        drift.append(
            SummaryDrift(
                event_id=totals.event_id,
                participant_id=totals.participant_id,
                field="current_status",
                stored=summary.current_status.value,
                expected=expected_status.value,
            )
        )
    if totals.nullified_sessions and not summary.has_improper_checkouts:
        drift.append(
            SummaryDrift(
                event_id=totals.event_id,
                participant_id=totals.participant_id,
                field="has_improper_checkouts",
                stored=False,
                expected=True,
            )
        )
    return drift


def find_drift(
    summaries: Sequence[AttendanceSummary], ledger_totals: Sequence[LedgerTotals], *, event_id: int
) -> list[SummaryDrift]:
    by_participant = {s.participant_id: s for s in summaries}
    drift: list[SummaryDrift] = []

    for totals in ledger_totals:
        summary = by_participant.pop(totals.participant_id, None)
        if summary is None:
            summary = AttendanceSummary(event_id=event_id, participant_id=totals.participant_id)
            drift.append(
                SummaryDrift(event_id, totals.participant_id, field="summary", stored=None, expected="row")
            )
        drift.extend(compare(summary, totals))

    # Summary rows without any ledger row must be all zeros.
    for summary in by_participant.values():
        empty = LedgerTotals(
            event_id=event_id,
            participant_id=summary.participant_id,
            total_valid_duration=0,
            total_nullified_duration=0,
            total_sessions=0,
            nullified_sessions=0,
            has_open_session=False,
        )
        drift.extend(compare(summary, empty))
    return drift


class SummaryReconciler:
    """Recompute summaries from the ledger and report any mismatch."""

    def __init__(self, uow: UnitOfWork):
        self._uow = uow

    def find_drift(self, event_id: int) -> list[SummaryDrift]:
        with self._uow.begin() as tx:
            summaries = tx.summaries.list_for_event(event_id)
            totals = tx.sessions.totals_for_event(event_id)
        drift = find_drift(summaries, totals, event_id=event_id)
        if drift:
            logger.warning("event %s: %d summary fields drifted from the ledger", event_id, len(drift))
        return drift
