from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidToken(ValidationError):
    """Scan token is malformed, unsigned or signed with a foreign key."""


class ExpiredToken(ValidationError):
    """Scan token signature is valid but its lifetime is over."""


class EventMismatch(ValidationError):
    """Scan token belongs to a different event than the scanner's."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class ParticipantNotFound(NotFoundError):
    pass


class EventNotFound(NotFoundError):
    pass


class ScanLogNotFound(NotFoundError):
    pass


class AuthorizationError(DomainError):
    """Raised when a caller lacks permission for an action."""


class OperatorNotResolved(AuthorizationError):
    """Scanner operator identity could not be resolved to an active user or volunteer."""


class StateError(DomainError):
    """Raised when the ledger or event state forbids the operation."""


class EventNotActive(StateError):
    pass


class DuplicateScanWithinDebounceWindow(StateError):
    def __init__(self, message: str, *, scan_type=None):
        super().__init__(message)
        self.scan_type = scan_type


class SessionConflict(StateError):
    """A second open session was attempted for the same participant and event."""


class IllegalTransition(StateError):
    """Event lifecycle transition is not allowed from the current phase."""


class Busy(DomainError):
    """Lock wait timed out or the transaction was chosen as a deadlock victim.

    Safe to resubmit: the toggle decision is re-derived from the ledger.
    """

    retryable = True


class LedgerIntegrityError(RuntimeError):
    """A multi-row mutation could not be applied completely."""
