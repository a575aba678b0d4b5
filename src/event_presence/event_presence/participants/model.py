from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Participant:
    """Domain entity: a user who can be scanned into events.

    Note: Plain data object, no DB access.
    """

    participant_id: int
    full_name: str
    email: Optional[str]
    department: Optional[str]
    role: Role = Role.PARTICIPANT
    is_active: bool = True

    @property
    def can_attend(self) -> bool:
        return self.is_active and self.role is Role.PARTICIPANT

    def to_dict(self) -> dict:
        return {
            "id": self.participant_id,
            "name": self.full_name,
            "email": self.email,
            "department": self.department,
        }
