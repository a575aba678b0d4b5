from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role of a row in the users table."""

    ADMIN = "admin"
    STAFF = "staff"
    PARTICIPANT = "participant"


class OperatorType(str, Enum):
    """Identity table a scanner operator lives in."""

    USER = "user"
    VOLUNTEER = "volunteer"


class SessionStatus(str, Enum):
    """Status of one check-in/check-out cycle in the attendance ledger."""

    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    AUTO_CHECKOUT = "auto-checkout"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.CHECKED_IN


class PresenceStatus(str, Enum):
    """Current status mirrored on the per-event summary row."""

    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"


class ScanType(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"
    OTHER = "other"


class ScanOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class ScanAction(str, Enum):
    """What a scan did, as reported back to the scanner."""

    IN = "in"
    OUT = "out"

    @property
    def scan_type(self) -> ScanType:
        return ScanType.CHECK_IN if self is ScanAction.IN else ScanType.CHECK_OUT


class TokenKind(str, Enum):
    PARTICIPANT = "participant"
    STALL = "stall"


class EventPhase(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    ENDED = "ended"


class LockMode(str, Enum):
    """Row lock taken by a locking read inside a transaction."""

    SHARE = "share"
    UPDATE = "update"
