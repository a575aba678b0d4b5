import pytest

from event_presence.common.datetime_utils import format_hours, format_minutes
from event_presence.common.validators import parse_optional_int, parse_pagination, parse_positive_int
from event_presence.core.exceptions import ValidationError


def test_pagination_defaults():
    assert parse_pagination() == (0, 10)
    assert parse_pagination("5", "100") == (5, 100)


@pytest.mark.parametrize("offset, limit", [("-1", "10"), ("0", "0"), ("0", "101"), ("x", "10")])
def test_pagination_bounds(offset, limit):
    with pytest.raises(ValidationError):
        parse_pagination(offset, limit)


def test_positive_int_parsing():
    assert parse_positive_int("42", "eventId") == 42
    assert parse_optional_int("", "eventId") is None
    with pytest.raises(ValidationError):
        parse_positive_int("0", "eventId")
    with pytest.raises(ValidationError):
        parse_positive_int(None, "eventId")


def test_duration_formatting():
    assert format_hours(5400) == 1.5
    assert format_minutes(600) == 10.0
