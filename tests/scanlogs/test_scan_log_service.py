from __future__ import annotations

from datetime import timedelta

import pytest

from event_presence.core.enums import ScanOutcome, ScanType
from event_presence.core.exceptions import ParticipantNotFound, ScanLogNotFound, ValidationError
from event_presence.scanlogs.service import ScanLogService

EVENT_ID = 1


@pytest.fixture
def scan_logs(uow) -> ScanLogService:
    return ScanLogService(uow)


@pytest.fixture
def activity(scan, fixed_now):
    scan(101, fixed_now)
    scan(101, fixed_now + timedelta(minutes=5))
    with pytest.raises(ParticipantNotFound):
        scan(999, fixed_now + timedelta(minutes=6))


def test_logs_are_listed_newest_first(activity, scan_logs):
    logs = scan_logs.list_logs(event_id=EVENT_ID)

    assert [log.scan_type for log in logs] == [ScanType.OTHER, ScanType.CHECK_OUT, ScanType.CHECK_IN]


def test_filter_by_status_and_type(activity, scan_logs):
    failed = scan_logs.list_logs(status="failed")
    check_outs = scan_logs.list_logs(scan_type="check-out")

    assert len(failed) == 1
    assert failed[0].status is ScanOutcome.FAILED
    assert "999" in failed[0].error_message
    assert [log.participant_id for log in check_outs] == [101]


def test_filter_by_participant_and_operator_type(activity, scan_logs):
    assert len(scan_logs.list_logs(participant_id=101, operator_type="volunteer")) == 2
    assert scan_logs.list_logs(operator_type="user") == []


def test_pagination(activity, scan_logs):
    page = scan_logs.list_logs(offset=1, limit=1)

    assert len(page) == 1
    assert page[0].scan_type is ScanType.CHECK_OUT


def test_invalid_filter_value_is_rejected(scan_logs):
    with pytest.raises(ValidationError):
        scan_logs.list_logs(status="maybe")


def test_flag_marks_entry_for_audit(activity, scan_logs, store):
    entry = scan_logs.flag(1, reason="  buddy punching suspected ")

    assert entry.flagged is True
    assert entry.flag_reason == "buddy punching suspected"
    assert store.scan_logs[1].flagged is True
    assert store.scan_logs[1].scan_type is ScanType.CHECK_IN


def test_flag_requires_reason(activity, scan_logs):
    with pytest.raises(ValidationError):
        scan_logs.flag(1, reason="  ")


def test_flag_unknown_entry(scan_logs):
    with pytest.raises(ScanLogNotFound):
        scan_logs.flag(404, reason="typo")
