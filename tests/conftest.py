from __future__ import annotations

from datetime import datetime

import pytest

from event_presence.attendance.factory import ScanStrategyFactory
from event_presence.attendance.service import ScanProcessor, ScanRequest
from event_presence.attendance.strategies.base import DebouncePolicy
from event_presence.core.enums import Role
from event_presence.events.model import Event
from event_presence.operators.model import UserOperator, VolunteerOperator
from event_presence.participants.model import Participant
from event_presence.tokens.verifier import ScanTokenIssuer, ScanTokenVerifier

from fakes import InMemoryParticipants, InMemoryStore, InMemoryUnitOfWork

QR_SECRET = "unit-test-qr-secret"
EVENT_ID = 1


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 1, 10, 0, 0)


@pytest.fixture
def store() -> InMemoryStore:
    s = InMemoryStore()
    s.events[EVENT_ID] = Event(
        event_id=EVENT_ID,
        name="Tech Fest",
        start_date=datetime(2025, 3, 1, 8, 0),
        end_date=datetime(2025, 3, 1, 18, 0),
        is_active=True,
    )
    s.events[2] = Event(
        event_id=2,
        name="Career Fair",
        start_date=datetime(2025, 6, 1, 9, 0),
        end_date=datetime(2025, 6, 1, 17, 0),
        is_active=False,
    )
    return s


@pytest.fixture
def uow(store) -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(store)


@pytest.fixture
def participants() -> InMemoryParticipants:
    return InMemoryParticipants(
        {
            101: Participant(101, "Alice Nguyen", "alice@example.org", "Computer Science"),
            102: Participant(102, "Bao Tran", "bao@example.org", "Computer Science"),
            103: Participant(103, "Chi Le", "chi@example.org", "Mechanical"),
            104: Participant(104, "Dung Pham", "dung@example.org", "Mechanical", is_active=False),
            1: Participant(1, "Admin Demo", "admin@example.org", "Operations", role=Role.ADMIN),
        }
    )


@pytest.fixture
def issuer() -> ScanTokenIssuer:
    return ScanTokenIssuer(QR_SECRET)


@pytest.fixture
def verifier() -> ScanTokenVerifier:
    return ScanTokenVerifier(QR_SECRET)


@pytest.fixture
def volunteer() -> VolunteerOperator:
    return VolunteerOperator(operator_id=7, full_name="Gate Volunteer")


@pytest.fixture
def staff_user() -> UserOperator:
    return UserOperator(operator_id=2, full_name="Staff Demo", role=Role.STAFF)


@pytest.fixture
def make_processor(uow, participants, verifier):
    def _make(policy: DebouncePolicy | None = None) -> ScanProcessor:
        return ScanProcessor(
            uow,
            participants,
            verifier,
            strategy_factory=ScanStrategyFactory(policy=policy or DebouncePolicy.disabled()),
        )

    return _make


@pytest.fixture
def scan(make_processor, issuer, volunteer):
    """Scan participant ``pid`` into the test event at ``now`` without debounce."""
    processor = make_processor()

    def _scan(pid: int, now: datetime, **kwargs):
        token = issuer.issue_participant_token(pid, EVENT_ID)
        return processor.process(ScanRequest(token=token, operator=volunteer, **kwargs), now=now)

    return _scan
