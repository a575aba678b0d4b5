from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..attendance.model import AttendanceSession
from ..events.model import Event
from ..participants.model import Participant
from .model import DepartmentMember, DepartmentStat, OperatorActivity, ParticipantRanking, SessionCounts


class AnalyticsRepository(Protocol):
    """Consistent (non-locking) reads over the ledger and the summaries."""

    def get_event(self, event_id: int) -> Optional[Event]:
        raise NotImplementedError

    def top_participants(self, event_id: int, *, offset: int, limit: int) -> Sequence[ParticipantRanking]:
        """Ordered by total_valid_duration desc, then participant id asc."""

        raise NotImplementedError

    def count_participants(self, event_id: int) -> int:
        raise NotImplementedError

    def department_counts(self, event_id: int) -> Sequence[DepartmentStat]:
        raise NotImplementedError

    def session_counts(self, event_id: int) -> SessionCounts:
        raise NotImplementedError

    def operator_activity(self, event_id: int, *, offset: int, limit: int) -> Sequence[OperatorActivity]:
        raise NotImplementedError

    def count_operators(self, event_id: int) -> int:
        raise NotImplementedError

    def get_participant(self, participant_id: int) -> Optional[Participant]:
        raise NotImplementedError

    def participant_sessions(self, participant_id: int, *, event_id: Optional[int] = None) -> Sequence[AttendanceSession]:
        """Ordered by check_in_time desc, then session id desc."""

        raise NotImplementedError

    def department_members(self, event_id: int, department: str) -> Sequence[DepartmentMember]:
        """Active participants of the department by name, each marked if they have any session."""

        raise NotImplementedError
