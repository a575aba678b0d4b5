from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable

from ..attendance import aggregate
from ..common.datetime_utils import now_local, seconds_between
from ..core.constants import FORCE_END_NULLIFIED_REASON
from ..core.enums import EventPhase, LockMode
from ..core.exceptions import EventNotFound, IllegalTransition, LedgerIntegrityError
from ..database.unit_of_work import Transaction, UnitOfWork
from .model import Event, ForceEndResult, LifecycleResult

logger = logging.getLogger(__name__)


class EventLifecycleService:
    """Manual overrides of the event schedule: start, end and restart.

    Each transition runs in one transaction holding the event row
    exclusively. Ending an event closes every open session as an
    auto-checkout whose time is nullified rather than credited.
    """

    def __init__(self, uow: UnitOfWork, *, clock: Callable[[], datetime] = now_local):
        self._uow = uow
        self._clock = clock

    def get_phase(self, event_id: int) -> Event:
        with self._uow.begin() as tx:
            return self._require(tx, event_id)

    def force_start(self, event_id: int, *, now: datetime | None = None) -> LifecycleResult:
        now = (now or self._clock()).replace(microsecond=0)

        with self._uow.begin() as tx:
            event = self._require(tx, event_id, lock=LockMode.UPDATE)
            previous = event.phase
            if previous is EventPhase.ENDED:
                raise IllegalTransition("Event has been ended; restart it instead")
            # Active outside its schedule window still needs the manual override.
            if previous is EventPhase.ACTIVE and event.accepts_scans(now):
                return LifecycleResult(event=event, previous_phase=previous, already_satisfied=True)

            tx.events.set_flags(event_id, is_active=True, manually_started=True, manually_ended=False)
            started = replace(event, is_active=True, manually_started=True, manually_ended=False)

        logger.info("event %s force-started", event_id)
        return LifecycleResult(event=started, previous_phase=previous)

    def force_end(self, event_id: int, *, now: datetime | None = None) -> ForceEndResult:
        now = (now or self._clock()).replace(microsecond=0)

        with self._uow.begin() as tx:
            event = self._require(tx, event_id, lock=LockMode.UPDATE)
            if event.manually_ended:
                return ForceEndResult(event_id=event_id, closed_sessions=0, total_nullified_seconds=0, already_ended=True)

            open_sessions = tx.sessions.list_open_for_event(event_id, lock=True)
            total_nullified = 0
            affected: list[int] = []
            for session in open_sessions:
                stop_time = max(now, session.check_in_time)
                nullified = seconds_between(session.check_in_time, stop_time)
                closed = tx.sessions.auto_close(
                    session_id=session.session_id,
                    stop_time=stop_time,
                    nullified_duration=nullified,
                    reason=FORCE_END_NULLIFIED_REASON,
                )
                if not closed:
                    raise LedgerIntegrityError(
                        f"open session {session.session_id} of event {event_id} could not be auto-closed"
                    )
                aggregate.apply_nullified_session(
                    tx.summaries,
                    participant_id=session.participant_id,
                    event_id=event_id,
                    duration_seconds=nullified,
                    at=stop_time,
                )
                total_nullified += nullified
                affected.append(session.participant_id)

            tx.events.set_flags(
                event_id,
                is_active=False,
                manually_started=event.manually_started,
                manually_ended=True,
            )

        logger.info(
            "event %s force-ended: %d open sessions nullified (%d seconds)",
            event_id,
            len(affected),
            total_nullified,
        )
        return ForceEndResult(
            event_id=event_id,
            closed_sessions=len(affected),
            total_nullified_seconds=total_nullified,
            affected_participants=tuple(sorted(set(affected))),
        )

    def restart(self, event_id: int) -> LifecycleResult:
        with self._uow.begin() as tx:
            event = self._require(tx, event_id, lock=LockMode.UPDATE)
            previous = event.phase
            if not event.manually_ended:
                raise IllegalTransition("Only an ended event can be restarted")

            tx.events.set_flags(event_id, is_active=True, manually_started=True, manually_ended=False)
            restarted = replace(event, is_active=True, manually_started=True, manually_ended=False)

        logger.info("event %s restarted", event_id)
        return LifecycleResult(event=restarted, previous_phase=previous)

    @staticmethod
    def _require(tx: Transaction, event_id: int, *, lock: LockMode | None = None) -> Event:
        event = tx.events.get(event_id, lock=lock)
        if event is None:
            raise EventNotFound(f"Event {event_id} not found")
        return event
