from __future__ import annotations

import threading
from dataclasses import replace
from datetime import timedelta

import pytest

from event_presence.attendance.service import ScanRequest
from event_presence.attendance.strategies.base import DebouncePolicy
from event_presence.core.enums import LockMode, PresenceStatus, ScanAction, ScanOutcome, ScanType, SessionStatus
from event_presence.core.exceptions import (
    Busy,
    DuplicateScanWithinDebounceWindow,
    EventMismatch,
    EventNotActive,
    EventNotFound,
    InvalidToken,
    ParticipantNotFound,
    ValidationError,
)

EVENT_ID = 1


def _logs(store, status=None):
    return [e for e in store.scan_logs.values() if status is None or e.status is status]


def test_first_scan_checks_in(scan, store, fixed_now):
    result = scan(101, fixed_now, gate="North")

    assert result.action is ScanAction.IN
    assert result.duration_seconds is None
    assert result.session.status is SessionStatus.CHECKED_IN
    assert result.session.check_in_time == fixed_now

    summary = store.summaries[(EVENT_ID, 101)]
    assert summary.current_status is PresenceStatus.CHECKED_IN
    assert summary.last_check_in_time == fixed_now
    assert summary.last_activity_date == fixed_now.date()
    assert summary.total_sessions == 0

    log = store.scan_logs[result.scan_log_id]
    assert log.status is ScanOutcome.SUCCESS
    assert log.scan_type is ScanType.CHECK_IN
    assert log.gate == "North"
    assert log.operator_type.value == "volunteer"


def test_second_scan_checks_out_and_credits_duration(scan, store, fixed_now):
    scan(101, fixed_now)
    result = scan(101, fixed_now + timedelta(minutes=45))

    assert result.action is ScanAction.OUT
    assert result.duration_seconds == 45 * 60
    assert result.session.status is SessionStatus.CHECKED_OUT

    summary = store.summaries[(EVENT_ID, 101)]
    assert summary.total_valid_duration == 45 * 60
    assert summary.total_sessions == 1
    assert summary.current_status is PresenceStatus.CHECKED_OUT


def test_in_out_in_out_leaves_two_closed_sessions(scan, store, fixed_now):
    actions = [scan(101, fixed_now + timedelta(minutes=m)).action for m in (0, 10, 20, 50)]

    assert actions == [ScanAction.IN, ScanAction.OUT, ScanAction.IN, ScanAction.OUT]
    sessions = [s for s in store.sessions.values() if s.participant_id == 101]
    assert len(sessions) == 2
    assert all(s.status is SessionStatus.CHECKED_OUT for s in sessions)
    assert all(s.duration_seconds >= 0 for s in sessions)
    assert store.open_sessions(EVENT_ID) == []
    assert store.summaries[(EVENT_ID, 101)].total_sessions == 2
    assert store.summaries[(EVENT_ID, 101)].total_valid_duration == 40 * 60


def test_scans_of_different_participants_are_independent(scan, store, fixed_now):
    scan(101, fixed_now)
    result = scan(102, fixed_now + timedelta(seconds=1))

    assert result.action is ScanAction.IN
    assert len(store.open_sessions(EVENT_ID)) == 2


def test_scan_reads_event_with_shared_lock(scan, store, fixed_now):
    scan(101, fixed_now)

    assert (EVENT_ID, LockMode.SHARE) in store.event_locks


def test_check_out_before_check_in_clock_is_clamped(scan, store, fixed_now):
    scan(101, fixed_now)
    result = scan(101, fixed_now - timedelta(seconds=5))

    assert result.action is ScanAction.OUT
    assert result.duration_seconds == 0
    assert result.session.check_out_time == fixed_now


def test_microseconds_are_dropped_from_scan_time(scan, fixed_now):
    result = scan(101, fixed_now.replace(microsecond=654321))

    assert result.session.check_in_time == fixed_now


def test_scan_type_hint_does_not_override_toggle(scan, fixed_now):
    result = scan(101, fixed_now, scan_type="check-out")

    assert result.action is ScanAction.IN


@pytest.mark.parametrize("hint", ["other", "exit", "IN"])
def test_unknown_scan_type_hint_is_rejected(scan, store, fixed_now, hint):
    with pytest.raises(ValidationError):
        scan(101, fixed_now, scan_type=hint)

    assert store.sessions == {}
    failed = _logs(store, ScanOutcome.FAILED)
    assert len(failed) == 1


class TestDebounce:
    @pytest.fixture
    def debounced(self, make_processor, issuer, volunteer):
        processor = make_processor(DebouncePolicy(min_checkout_seconds=30, recheckin_cooldown_seconds=60))

        def _scan(pid, now):
            token = issuer.issue_participant_token(pid, EVENT_ID)
            return processor.process(ScanRequest(token=token, operator=volunteer), now=now)

        return _scan

    def test_check_out_too_soon_is_rejected_and_session_stays_open(self, debounced, store, fixed_now):
        debounced(101, fixed_now)

        with pytest.raises(DuplicateScanWithinDebounceWindow) as exc_info:
            debounced(101, fixed_now + timedelta(seconds=10))

        assert exc_info.value.scan_type is ScanType.CHECK_OUT
        assert len(store.open_sessions(EVENT_ID)) == 1
        failed = _logs(store, ScanOutcome.FAILED)
        assert failed[-1].scan_type is ScanType.CHECK_OUT
        assert failed[-1].participant_id == 101

    def test_check_out_after_window_is_accepted(self, debounced, fixed_now):
        debounced(101, fixed_now)

        assert debounced(101, fixed_now + timedelta(seconds=30)).action is ScanAction.OUT

    def test_re_check_in_during_cooldown_is_rejected(self, debounced, store, fixed_now):
        debounced(101, fixed_now)
        debounced(101, fixed_now + timedelta(minutes=5))

        with pytest.raises(DuplicateScanWithinDebounceWindow) as exc_info:
            debounced(101, fixed_now + timedelta(minutes=5, seconds=20))

        assert exc_info.value.scan_type is ScanType.CHECK_IN
        assert store.open_sessions(EVENT_ID) == []

    def test_re_check_in_after_cooldown_is_accepted(self, debounced, fixed_now):
        debounced(101, fixed_now)
        debounced(101, fixed_now + timedelta(minutes=5))

        assert debounced(101, fixed_now + timedelta(minutes=6)).action is ScanAction.IN


class TestRejectedScans:
    def test_unknown_participant(self, scan, store, fixed_now):
        with pytest.raises(ParticipantNotFound):
            scan(999, fixed_now)

        assert store.sessions == {}
        assert store.summaries == {}
        assert _logs(store, ScanOutcome.FAILED)[0].participant_id is None

    def test_inactive_participant(self, scan, fixed_now):
        with pytest.raises(ParticipantNotFound):
            scan(104, fixed_now)

    def test_staff_user_is_not_a_participant(self, scan, fixed_now):
        with pytest.raises(ParticipantNotFound):
            scan(1, fixed_now)

    def test_stall_token_cannot_be_used_for_attendance(self, make_processor, issuer, volunteer, store, fixed_now):
        token = issuer.issue_stall_token(5, EVENT_ID)

        with pytest.raises(InvalidToken):
            make_processor().process(ScanRequest(token=token, operator=volunteer), now=fixed_now)

        assert store.sessions == {}

    def test_garbage_token_is_logged_as_failed(self, make_processor, volunteer, store, fixed_now):
        with pytest.raises(InvalidToken):
            make_processor().process(ScanRequest(token="garbage", operator=volunteer, event_id=EVENT_ID), now=fixed_now)

        (log,) = _logs(store)
        assert log.status is ScanOutcome.FAILED
        assert log.scan_type is ScanType.OTHER
        assert log.event_id == EVENT_ID
        assert log.error_message

    @pytest.mark.parametrize("event_id", ["abc", "0", -3])
    def test_malformed_event_id_is_logged_as_failed(self, make_processor, issuer, volunteer, store, fixed_now, event_id):
        token = issuer.issue_participant_token(101, EVENT_ID)

        with pytest.raises(ValidationError):
            make_processor().process(ScanRequest(token=token, operator=volunteer, event_id=event_id), now=fixed_now)

        (log,) = _logs(store)
        assert log.status is ScanOutcome.FAILED
        assert log.event_id is None
        assert log.operator_id == volunteer.operator_id
        assert "eventId" in log.error_message
        assert store.sessions == {}

    def test_numeric_string_event_id_is_accepted(self, make_processor, issuer, volunteer, fixed_now):
        token = issuer.issue_participant_token(101, EVENT_ID)

        result = make_processor().process(ScanRequest(token=token, operator=volunteer, event_id=str(EVENT_ID)), now=fixed_now)

        assert result.action is ScanAction.IN

    def test_token_for_another_event(self, make_processor, issuer, volunteer, fixed_now):
        token = issuer.issue_participant_token(101, 2)

        with pytest.raises(EventMismatch):
            make_processor().process(ScanRequest(token=token, operator=volunteer, event_id=EVENT_ID), now=fixed_now)

    def test_event_not_found(self, make_processor, issuer, volunteer, store, fixed_now):
        token = issuer.issue_participant_token(101, 42)

        with pytest.raises(EventNotFound):
            make_processor().process(ScanRequest(token=token, operator=volunteer), now=fixed_now)

        assert store.summaries == {}

    def test_event_not_started(self, make_processor, issuer, volunteer, store, fixed_now):
        token = issuer.issue_participant_token(101, 2)

        with pytest.raises(EventNotActive):
            make_processor().process(ScanRequest(token=token, operator=volunteer), now=fixed_now)

    def test_event_outside_schedule_window(self, scan, fixed_now):
        with pytest.raises(EventNotActive):
            scan(101, fixed_now.replace(hour=19))

    def test_ended_event_rejects_scans(self, scan, store, fixed_now):
        store.events[EVENT_ID] = replace(store.events[EVENT_ID], is_active=False, manually_ended=True)

        with pytest.raises(EventNotActive):
            scan(101, fixed_now)

        assert store.sessions == {}
        assert _logs(store, ScanOutcome.FAILED)[0].event_id == EVENT_ID

    def test_manual_start_overrides_schedule_window(self, scan, store, fixed_now):
        store.events[EVENT_ID] = replace(store.events[EVENT_ID], manually_started=True)

        assert scan(101, fixed_now.replace(hour=20)).action is ScanAction.IN


def test_busy_participant_row_raises_retryable_busy(scan, uow, store, fixed_now):
    uow.lock_timeout = 0.05
    uow.mutex.acquire()
    try:
        with pytest.raises(Busy) as exc_info:
            scan(101, fixed_now)
    finally:
        uow.mutex.release()

    assert exc_info.value.retryable is True
    assert store.sessions == {}


def test_busy_scan_can_be_resubmitted(scan, uow, fixed_now):
    uow.lock_timeout = 0.05
    uow.mutex.acquire()
    try:
        with pytest.raises(Busy):
            scan(101, fixed_now)
    finally:
        uow.mutex.release()

    assert scan(101, fixed_now).action is ScanAction.IN


def test_failed_scan_rolls_back_ledger_writes(scan, uow, store, fixed_now):
    class ExplodingScanLogs:
        def __init__(self, inner):
            self._inner = inner

        def append(self, entry):
            if entry.status is ScanOutcome.SUCCESS:
                raise RuntimeError("disk full")
            return self._inner.append(entry)

    original_factory = uow.transaction_factory

    def factory(s):
        tx = original_factory(s)
        tx.scan_logs = ExplodingScanLogs(tx.scan_logs)
        return tx

    uow.transaction_factory = factory

    with pytest.raises(RuntimeError):
        scan(101, fixed_now)

    assert store.sessions == {}
    assert store.summaries == {}
    (log,) = _logs(store)
    assert log.status is ScanOutcome.FAILED
    assert log.scan_type is ScanType.CHECK_IN
    assert log.error_message == "disk full"


class TestConcurrentScans:
    def _race(self, processor, issuer, volunteer, now, *, threads=2):
        token = issuer.issue_participant_token(101, EVENT_ID)
        barrier = threading.Barrier(threads)
        outcomes = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            try:
                result = processor.process(ScanRequest(token=token, operator=volunteer), now=now)
                outcome = result.action
            except DuplicateScanWithinDebounceWindow as exc:
                outcome = exc
            with lock:
                outcomes.append(outcome)

        workers = [threading.Thread(target=worker) for _ in range(threads)]
        for w in workers:
            w.start()
        for w in workers:
            w.join()
        return outcomes

    def test_same_instant_without_debounce_is_one_in_and_one_out(self, make_processor, issuer, volunteer, store, fixed_now):
        outcomes = self._race(make_processor(), issuer, volunteer, fixed_now)

        assert sorted(o.value for o in outcomes) == ["in", "out"]
        assert store.open_sessions(EVENT_ID) == []
        assert len(store.sessions) == 1

    def test_same_instant_with_debounce_is_one_in_and_one_rejection(self, make_processor, issuer, volunteer, store, fixed_now):
        outcomes = self._race(make_processor(DebouncePolicy()), issuer, volunteer, fixed_now)

        assert ScanAction.IN in outcomes
        assert sum(isinstance(o, DuplicateScanWithinDebounceWindow) for o in outcomes) == 1
        assert len(store.open_sessions(EVENT_ID)) == 1

    def test_many_concurrent_scans_never_open_two_sessions(self, make_processor, issuer, volunteer, store, fixed_now):
        outcomes = self._race(make_processor(), issuer, volunteer, fixed_now, threads=8)

        assert len(outcomes) == 8
        assert len(store.open_sessions(EVENT_ID)) <= 1
        assert sum(1 for o in outcomes if o is ScanAction.IN) == len(store.sessions)
