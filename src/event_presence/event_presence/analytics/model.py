from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Optional, Sequence, TypeVar

from ..attendance.model import AttendanceSession
from ..common.datetime_utils import format_hours, format_minutes, seconds_between
from ..core.enums import OperatorType, SessionStatus
from ..events.model import Event
from ..participants.model import Participant

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    offset: int
    limit: int
    total: int

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "pagination": {"offset": self.offset, "limit": self.limit, "total": self.total},
        }


@dataclass(frozen=True)
class ParticipantRanking:
    participant_id: int
    full_name: str
    department: Optional[str]
    total_valid_duration: int
    total_sessions: int
    total_nullified_duration: int
    nullified_sessions: int
    has_improper_checkouts: bool
    rank: int = 0

    @property
    def valid_hours(self) -> float:
        return format_hours(self.total_valid_duration)

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "participantId": self.participant_id,
            "name": self.full_name,
            "department": self.department,
            "totalValidDuration": self.total_valid_duration,
            "validHours": self.valid_hours,
            "totalSessions": self.total_sessions,
            "totalNullifiedDuration": self.total_nullified_duration,
            "nullifiedSessions": self.nullified_sessions,
            "hasImproperCheckouts": self.has_improper_checkouts,
        }


def attendance_percentage(attended: int, enrolled: int) -> float:
    if enrolled <= 0:
        return 0.0
    return round(attended / enrolled * 100, 2)


@dataclass(frozen=True)
class DepartmentStat:
    department: str
    enrolled: int
    attended: int

    @property
    def absent(self) -> int:
        return max(0, self.enrolled - self.attended)

    @property
    def attendance_percentage(self) -> float:
        return attendance_percentage(self.attended, self.enrolled)

    def to_dict(self) -> dict:
        return {
            "department": self.department,
            "enrolled": self.enrolled,
            "attended": self.attended,
            "absent": self.absent,
            "attendancePercentage": self.attendance_percentage,
        }


@dataclass(frozen=True)
class DepartmentReport:
    page: Page[DepartmentStat]
    total_enrolled: int
    total_attended: int

    @property
    def overall_percentage(self) -> float:
        return attendance_percentage(self.total_attended, self.total_enrolled)

    def to_dict(self) -> dict:
        data = self.page.to_dict()
        data["overall"] = {
            "enrolled": self.total_enrolled,
            "attended": self.total_attended,
            "absent": max(0, self.total_enrolled - self.total_attended),
            "attendancePercentage": self.overall_percentage,
        }
        return data


@dataclass(frozen=True)
class SessionCounts:
    total_sessions: int = 0
    open_sessions: int = 0
    closed_sessions: int = 0
    nullified_sessions: int = 0
    distinct_attendees: int = 0
    total_valid_seconds: int = 0
    total_nullified_seconds: int = 0


@dataclass(frozen=True)
class EventOverview:
    event: Event
    counts: SessionCounts

    def to_dict(self) -> dict:
        c = self.counts
        return {
            "eventId": self.event.event_id,
            "name": self.event.name,
            "phase": self.event.phase.value,
            "totalSessions": c.total_sessions,
            "openSessions": c.open_sessions,
            "closedSessions": c.closed_sessions,
            "nullifiedSessions": c.nullified_sessions,
            "distinctAttendees": c.distinct_attendees,
            "totalValidSeconds": c.total_valid_seconds,
            "totalValidHours": format_hours(c.total_valid_seconds),
            "totalNullifiedSeconds": c.total_nullified_seconds,
            "totalNullifiedMinutes": format_minutes(c.total_nullified_seconds),
        }


@dataclass(frozen=True)
class OperatorActivity:
    operator_type: OperatorType
    operator_id: int
    operator_name: Optional[str]
    total_scans: int
    success_count: int
    failed_count: int

    def to_dict(self) -> dict:
        return {
            "operator": {"id": self.operator_id, "type": self.operator_type.value, "name": self.operator_name},
            "totalScans": self.total_scans,
            "successCount": self.success_count,
            "failedCount": self.failed_count,
        }


@dataclass(frozen=True)
class ParticipantHistory:
    """Every session of one participant, newest first.

    Open sessions report the time elapsed up to ``as_of``; it is not valid
    time until the participant checks out.
    """

    participant: Participant
    sessions: Sequence[AttendanceSession]
    as_of: datetime

    def elapsed_seconds(self, session: AttendanceSession) -> int:
        if session.is_open:
            return seconds_between(session.check_in_time, self.as_of)
        return session.duration_seconds or 0

    @property
    def total_valid_seconds(self) -> int:
        return sum(s.duration_seconds or 0 for s in self.sessions)

    @property
    def total_nullified_seconds(self) -> int:
        return sum(s.nullified_duration or 0 for s in self.sessions if s.is_nullified)

    @property
    def completed_sessions(self) -> int:
        return sum(1 for s in self.sessions if s.status is SessionStatus.CHECKED_OUT)

    @property
    def average_session_seconds(self) -> int:
        if not self.completed_sessions:
            return 0
        return round(self.total_valid_seconds / self.completed_sessions)

    @property
    def currently_active(self) -> bool:
        return any(s.is_open for s in self.sessions)

    def to_dict(self) -> dict:
        return {
            "participant": self.participant.to_dict(),
            "sessions": [
                {
                    **s.to_dict(),
                    "durationSeconds": self.elapsed_seconds(s),
                    "durationHours": format_hours(self.elapsed_seconds(s)),
                }
                for s in self.sessions
            ],
            "statistics": {
                "totalSessions": len(self.sessions),
                "completedSessions": self.completed_sessions,
                "totalValidSeconds": self.total_valid_seconds,
                "totalValidHours": format_hours(self.total_valid_seconds),
                "totalNullifiedSeconds": self.total_nullified_seconds,
                "averageSessionSeconds": self.average_session_seconds,
                "currentlyActive": self.currently_active,
            },
        }


@dataclass(frozen=True)
class DepartmentMember:
    participant: Participant
    attended: bool


@dataclass(frozen=True)
class DepartmentDetails:
    event: Event
    department: str
    members: Sequence[DepartmentMember]

    @property
    def attended(self) -> list[Participant]:
        return [m.participant for m in self.members if m.attended]

    @property
    def absent(self) -> list[Participant]:
        return [m.participant for m in self.members if not m.attended]

    @property
    def stat(self) -> DepartmentStat:
        return DepartmentStat(department=self.department, enrolled=len(self.members), attended=len(self.attended))

    def to_dict(self) -> dict:
        return {
            "event": {"id": self.event.event_id, "name": self.event.name},
            "department": self.department,
            "statistics": self.stat.to_dict(),
            "attended": [{**p.to_dict(), "status": "present"} for p in self.attended],
            "absent": [{**p.to_dict(), "status": "absent"} for p in self.absent],
        }
