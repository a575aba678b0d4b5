from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_PAGE_LIMIT
from ..core.enums import Role
from ..core.exceptions import EventNotFound, ParticipantNotFound
from .model import (
    DepartmentDetails,
    DepartmentReport,
    DepartmentStat,
    EventOverview,
    OperatorActivity,
    Page,
    ParticipantHistory,
    ParticipantRanking,
)
from .repository import AnalyticsRepository


class AnalyticsService:
    """Reporting queries computed on demand; holds no state of its own."""

    def __init__(self, analytics: AnalyticsRepository, *, clock: Callable[[], datetime] = now_local):
        self._analytics = analytics
        self._clock = clock

    def _require_event(self, event_id: int):
        event = self._analytics.get_event(event_id)
        if event is None:
            raise EventNotFound(f"Event {event_id} not found")
        return event

    def top_participants(self, event_id: int, *, offset: int = 0, limit: int = DEFAULT_PAGE_LIMIT) -> Page[ParticipantRanking]:
        self._require_event(event_id)
        rows = self._analytics.top_participants(event_id, offset=offset, limit=limit)
        ranked = [replace(r, rank=offset + i + 1) for i, r in enumerate(rows)]
        return Page(items=ranked, offset=offset, limit=limit, total=self._analytics.count_participants(event_id))

    def department_stats(self, event_id: int, *, offset: int = 0, limit: int = DEFAULT_PAGE_LIMIT) -> DepartmentReport:
        self._require_event(event_id)
        stats = sorted(
            self._analytics.department_counts(event_id),
            key=lambda d: (-d.attendance_percentage, -d.attended, d.department),
        )
        page: Page[DepartmentStat] = Page(
            items=stats[offset : offset + limit],
            offset=offset,
            limit=limit,
            total=len(stats),
        )
        return DepartmentReport(
            page=page,
            total_enrolled=sum(d.enrolled for d in stats),
            total_attended=sum(d.attended for d in stats),
        )

    def event_overview(self, event_id: int) -> EventOverview:
        event = self._require_event(event_id)
        return EventOverview(event=event, counts=self._analytics.session_counts(event_id))

    def operator_activity(self, event_id: int, *, offset: int = 0, limit: int = DEFAULT_PAGE_LIMIT) -> Page[OperatorActivity]:
        self._require_event(event_id)
        rows = self._analytics.operator_activity(event_id, offset=offset, limit=limit)
        return Page(items=list(rows), offset=offset, limit=limit, total=self._analytics.count_operators(event_id))

    def participant_history(
        self, participant_id: int, *, event_id: Optional[int] = None, now: datetime | None = None
    ) -> ParticipantHistory:
        participant = self._analytics.get_participant(participant_id)
        if participant is None or participant.role is not Role.PARTICIPANT:
            raise ParticipantNotFound(f"Participant {participant_id} not found")
        if event_id is not None:
            self._require_event(event_id)
        sessions = self._analytics.participant_sessions(participant_id, event_id=event_id)
        return ParticipantHistory(
            participant=participant,
            sessions=tuple(sessions),
            as_of=(now or self._clock()).replace(microsecond=0),
        )

    def department_details(self, event_id: int, department: str) -> DepartmentDetails:
        department = require_non_empty(department or "", "department")
        event = self._require_event(event_id)
        members = self._analytics.department_members(event_id, department)
        return DepartmentDetails(event=event, department=department, members=tuple(members))
