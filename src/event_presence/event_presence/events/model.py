from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EventPhase


@dataclass(frozen=True)
class Event:
    """Domain entity: an event participants are scanned into.

    Only the lifecycle controller changes the three flags; everything else
    about an event is owned by the external event administration.
    """

    event_id: int
    name: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    is_active: bool
    manually_started: bool = False
    manually_ended: bool = False

    @property
    def phase(self) -> EventPhase:
        if self.manually_ended:
            return EventPhase.ENDED
        if self.is_active:
            return EventPhase.ACTIVE
        return EventPhase.SCHEDULED

    def accepts_scans(self, now: datetime) -> bool:
        if self.phase is not EventPhase.ACTIVE:
            return False
        # A manual start or restart overrides the published schedule.
        if self.manually_started:
            return True
        if self.start_date and now < self.start_date:
            return False
        if self.end_date and now > self.end_date:
            return False
        return True


@dataclass(frozen=True)
class LifecycleResult:
    event: Event
    previous_phase: EventPhase
    already_satisfied: bool = False

    def to_dict(self) -> dict:
        return {
            "eventId": self.event.event_id,
            "phase": self.event.phase.value,
            "previousPhase": self.previous_phase.value,
            "alreadySatisfied": self.already_satisfied,
            "isActive": self.event.is_active,
            "manuallyStarted": self.event.manually_started,
            "manuallyEnded": self.event.manually_ended,
        }


@dataclass(frozen=True)
class ForceEndResult:
    """Outcome of a forced event end, including what was nullified."""

    event_id: int
    closed_sessions: int
    total_nullified_seconds: int
    affected_participants: tuple[int, ...] = ()
    already_ended: bool = False

    @property
    def total_nullified_minutes(self) -> float:
        return round(self.total_nullified_seconds / 60, 2)

    def to_dict(self) -> dict:
        return {
            "eventId": self.event_id,
            "alreadyEnded": self.already_ended,
            "closedSessions": self.closed_sessions,
            "affectedParticipants": list(self.affected_participants),
            "totalNullifiedSeconds": self.total_nullified_seconds,
            "totalNullifiedMinutes": self.total_nullified_minutes,
        }
