from __future__ import annotations

from typing import Optional, Protocol

from .model import Participant


class ParticipantRepository(Protocol):
    """Identity lookup for scanned participants (external user directory)."""

    def get_by_id(self, participant_id: int) -> Optional[Participant]:
        raise NotImplementedError
