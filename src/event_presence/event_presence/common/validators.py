from __future__ import annotations

from typing import Any, Optional

from ..core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def parse_positive_int(value: Any, field_name: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if parsed <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return parsed


def parse_optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_positive_int(value, field_name)


def parse_pagination(offset: Any = None, limit: Any = None, *, default_limit: int = DEFAULT_PAGE_LIMIT) -> tuple[int, int]:
    try:
        off = int(offset) if offset not in (None, "") else 0
        lim = int(limit) if limit not in (None, "") else default_limit
    except (TypeError, ValueError):
        raise ValidationError("offset/limit must be integers")
    if off < 0:
        raise ValidationError("offset must be >= 0")
    if lim < 1 or lim > MAX_PAGE_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_LIMIT}")
    return off, lim
