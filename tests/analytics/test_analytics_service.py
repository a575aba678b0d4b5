from __future__ import annotations

from datetime import timedelta

import pytest

from event_presence.analytics.model import DepartmentStat
from event_presence.analytics.service import AnalyticsService
from event_presence.attendance.model import AttendanceSession
from event_presence.core.enums import SessionStatus
from event_presence.core.exceptions import EventNotFound, ParticipantNotFound, ValidationError
from event_presence.events.service import EventLifecycleService
from event_presence.participants.model import Participant

from fakes import InMemoryAnalytics, InMemoryParticipants

EVENT_ID = 1


@pytest.fixture
def analytics(store, participants) -> AnalyticsService:
    return AnalyticsService(InMemoryAnalytics(store, participants))


def test_department_with_40_of_100_attending_reports_40_percent(store, fixed_now):
    people = InMemoryParticipants(
        {pid: Participant(pid, f"P{pid}", None, "D") for pid in range(1, 101)}
    )
    for pid in range(1, 41):
        store.sessions[pid] = AttendanceSession(
            session_id=pid,
            participant_id=pid,
            event_id=EVENT_ID,
            check_in_time=fixed_now,
            check_out_time=fixed_now + timedelta(minutes=30),
            status=SessionStatus.CHECKED_OUT,
        )

    report = AnalyticsService(InMemoryAnalytics(store, people)).department_stats(EVENT_ID)

    (dept,) = report.page.items
    assert dept.enrolled == 100
    assert dept.attended == 40
    assert dept.absent == 60
    assert dept.attendance_percentage == 40.00
    assert report.overall_percentage == 40.00


def test_percentage_is_rounded_to_two_places_and_zero_when_nobody_enrolled():
    assert DepartmentStat("D", enrolled=3, attended=1).attendance_percentage == 33.33
    assert DepartmentStat("D", enrolled=0, attended=0).attendance_percentage == 0.0


def test_departments_are_ranked_by_attendance_percentage(scan, analytics, fixed_now):
    scan(103, fixed_now)

    report = analytics.department_stats(EVENT_ID)

    assert [d.department for d in report.page.items] == ["Mechanical", "Computer Science"]
    mech = report.page.items[0]
    # 104 is inactive and not enrolled.
    assert (mech.enrolled, mech.attended) == (1, 1)
    assert report.total_enrolled == 3
    assert report.total_attended == 1


def test_top_participants_rank_by_valid_time(scan, analytics, fixed_now):
    scan(101, fixed_now)
    scan(101, fixed_now + timedelta(minutes=10))
    scan(102, fixed_now)
    scan(102, fixed_now + timedelta(minutes=90))
    scan(103, fixed_now)
    scan(103, fixed_now + timedelta(minutes=10))

    page = analytics.top_participants(EVENT_ID, offset=0, limit=10)

    assert [r.participant_id for r in page.items] == [102, 101, 103]
    assert [r.rank for r in page.items] == [1, 2, 3]
    assert page.items[0].valid_hours == 1.5
    assert page.total == 3


def test_top_participants_pagination_keeps_absolute_rank(scan, analytics, fixed_now):
    for pid, minutes in ((101, 10), (102, 20), (103, 30)):
        scan(pid, fixed_now)
        scan(pid, fixed_now + timedelta(minutes=minutes))

    page = analytics.top_participants(EVENT_ID, offset=1, limit=1)

    (row,) = page.items
    assert row.participant_id == 102
    assert row.rank == 2


def test_event_overview_counts_sessions(scan, uow, analytics, fixed_now):
    scan(101, fixed_now)
    scan(101, fixed_now + timedelta(minutes=10))
    scan(102, fixed_now)
    scan(103, fixed_now + timedelta(minutes=1))
    EventLifecycleService(uow).force_end(EVENT_ID, now=fixed_now + timedelta(minutes=11))

    overview = analytics.event_overview(EVENT_ID)

    c = overview.counts
    assert (c.total_sessions, c.open_sessions, c.closed_sessions, c.nullified_sessions) == (3, 0, 1, 2)
    assert c.distinct_attendees == 3
    assert c.total_valid_seconds == 600
    assert c.total_nullified_seconds == 11 * 60 + 10 * 60
    assert overview.to_dict()["phase"] == "ended"


def test_operator_activity_counts_success_and_failure(scan, analytics, fixed_now):
    scan(101, fixed_now)
    with pytest.raises(ParticipantNotFound):
        scan(999, fixed_now)

    page = analytics.operator_activity(EVENT_ID)

    (row,) = page.items
    assert row.operator_id == 7
    assert (row.total_scans, row.success_count, row.failed_count) == (2, 1, 1)


def test_unknown_event_is_not_found(analytics):
    with pytest.raises(EventNotFound):
        analytics.top_participants(404)


class TestParticipantHistory:
    def test_sessions_are_listed_newest_first_with_running_time(self, scan, analytics, fixed_now):
        scan(101, fixed_now)
        scan(101, fixed_now + timedelta(minutes=10))
        scan(101, fixed_now + timedelta(minutes=20))

        history = analytics.participant_history(101, now=fixed_now + timedelta(minutes=25))

        newest, oldest = history.sessions
        assert newest.is_open
        assert history.elapsed_seconds(newest) == 300
        assert oldest.status is SessionStatus.CHECKED_OUT
        assert history.elapsed_seconds(oldest) == 600
        assert history.total_valid_seconds == 600
        assert history.completed_sessions == 1
        assert history.average_session_seconds == 600
        assert history.currently_active is True

        data = history.to_dict()
        assert data["participant"]["id"] == 101
        assert [s["durationSeconds"] for s in data["sessions"]] == [300, 600]
        assert data["statistics"]["totalSessions"] == 2

    def test_nullified_time_is_reported_apart_from_valid_time(self, scan, uow, analytics, fixed_now):
        scan(102, fixed_now)
        EventLifecycleService(uow).force_end(EVENT_ID, now=fixed_now + timedelta(minutes=15))

        history = analytics.participant_history(102, event_id=EVENT_ID, now=fixed_now + timedelta(hours=1))

        (session,) = history.sessions
        assert session.status is SessionStatus.AUTO_CHECKOUT
        assert history.elapsed_seconds(session) == 0
        assert history.total_valid_seconds == 0
        assert history.total_nullified_seconds == 900
        assert history.average_session_seconds == 0
        assert history.currently_active is False

    def test_event_filter_excludes_other_events(self, scan, store, analytics, fixed_now):
        scan(101, fixed_now)
        store.sessions[99] = AttendanceSession(
            session_id=99,
            participant_id=101,
            event_id=2,
            check_in_time=fixed_now - timedelta(days=1),
            check_out_time=fixed_now - timedelta(days=1, minutes=-5),
            status=SessionStatus.CHECKED_OUT,
        )

        assert len(analytics.participant_history(101, now=fixed_now).sessions) == 2
        assert [s.event_id for s in analytics.participant_history(101, event_id=2, now=fixed_now).sessions] == [2]

    def test_participant_without_sessions_has_empty_history(self, analytics, fixed_now):
        history = analytics.participant_history(103, now=fixed_now)

        assert history.sessions == ()
        assert history.currently_active is False

    def test_unknown_or_non_participant_is_not_found(self, analytics):
        with pytest.raises(ParticipantNotFound):
            analytics.participant_history(999)
        with pytest.raises(ParticipantNotFound):
            analytics.participant_history(1)

    def test_unknown_event_filter_is_not_found(self, analytics):
        with pytest.raises(EventNotFound):
            analytics.participant_history(101, event_id=404)


class TestDepartmentDetails:
    def test_members_are_split_into_attended_and_absent(self, scan, analytics, fixed_now):
        scan(102, fixed_now)

        details = analytics.department_details(EVENT_ID, "Computer Science")

        assert [p.participant_id for p in details.attended] == [102]
        assert [p.participant_id for p in details.absent] == [101]
        assert details.stat.attendance_percentage == 50.0
        data = details.to_dict()
        assert data["event"] == {"id": EVENT_ID, "name": "Tech Fest"}
        assert data["attended"][0]["status"] == "present"
        assert data["absent"][0]["status"] == "absent"

    def test_inactive_members_are_not_enrolled(self, analytics):
        details = analytics.department_details(EVENT_ID, "Mechanical")

        assert [m.participant.participant_id for m in details.members] == [103]
        assert details.stat.enrolled == 1

    def test_unknown_department_is_empty(self, analytics):
        details = analytics.department_details(EVENT_ID, "Astronomy")

        assert details.members == ()
        assert details.stat.attendance_percentage == 0.0

    def test_department_is_required(self, analytics):
        with pytest.raises(ValidationError):
            analytics.department_details(EVENT_ID, "  ")

    def test_unknown_event_is_not_found(self, analytics):
        with pytest.raises(EventNotFound):
            analytics.department_details(404, "Computer Science")
