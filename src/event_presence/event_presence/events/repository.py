from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import LockMode
from .model import Event


class EventRepository(Protocol):
    def get(self, event_id: int, *, lock: Optional[LockMode] = None) -> Optional[Event]:
        raise NotImplementedError

    def set_flags(self, event_id: int, *, is_active: bool, manually_started: bool, manually_ended: bool) -> None:
        raise NotImplementedError
