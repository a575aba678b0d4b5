from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.constants import DEFAULT_MIN_CHECKOUT_SECONDS, DEFAULT_RECHECKIN_COOLDOWN_SECONDS
from ...core.enums import ScanAction
from ...database.unit_of_work import Transaction
from ..model import AttendanceSession


@dataclass(frozen=True)
class DebouncePolicy:
    """Windows that absorb double taps at the gate. Zero disables a window."""

    min_checkout_seconds: int = DEFAULT_MIN_CHECKOUT_SECONDS
    recheckin_cooldown_seconds: int = DEFAULT_RECHECKIN_COOLDOWN_SECONDS

    @classmethod
    def disabled(cls) -> "DebouncePolicy":
        return cls(min_checkout_seconds=0, recheckin_cooldown_seconds=0)


@dataclass(frozen=True)
class ScanDecision:
    action: ScanAction
    session: AttendanceSession
    duration_seconds: Optional[int] = None


class ScanStrategy(ABC):
    """Strategy Pattern: what one scan does to the ledger and the aggregate.

    Called with the per-participant lock held; implementations may assume
    ``open_session`` is the current ledger state.
    """

    action: ScanAction

    def __init__(self, policy: DebouncePolicy):
        self._policy = policy

    @abstractmethod
    def apply(
        self,
        tx: Transaction,
        *,
        participant_id: int,
        event_id: int,
        open_session: Optional[AttendanceSession],
        now: datetime,
    ) -> ScanDecision:
        raise NotImplementedError
