from __future__ import annotations

from typing import Optional, Protocol

from .model import UserOperator, VolunteerOperator


class OperatorRepository(Protocol):
    """Lookup of scanner operators in their two identity tables."""

    def get_user(self, user_id: int) -> Optional[UserOperator]:
        raise NotImplementedError

    def get_volunteer(self, volunteer_id: int) -> Optional[VolunteerOperator]:
        raise NotImplementedError
