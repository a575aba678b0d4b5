from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .model import AttendanceSession
from .strategies.base import DebouncePolicy, ScanStrategy
from .strategies.check_in import CheckInStrategy
from .strategies.check_out import CheckOutStrategy


@dataclass
class ScanStrategyFactory:
    """Factory Pattern: the ledger state alone chooses check-in or check-out.

    Scanners never say which one they mean, so a repeated scan always has a
    deterministic effect.
    """

    policy: DebouncePolicy = field(default_factory=DebouncePolicy)

    def for_open_session(self, open_session: Optional[AttendanceSession]) -> ScanStrategy:
        if open_session is None:
            return CheckInStrategy(self.policy)
        return CheckOutStrategy(self.policy)
