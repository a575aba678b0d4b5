from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from ..core.enums import OperatorType, Role


@dataclass(frozen=True)
class UserOperator:
    """Scanner operator from the users table (admin or staff)."""

    operator_type: ClassVar[OperatorType] = OperatorType.USER

    operator_id: int
    full_name: str
    role: Role
    department: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class VolunteerOperator:
    """Scanner operator from the volunteers table."""

    operator_type: ClassVar[OperatorType] = OperatorType.VOLUNTEER

    operator_id: int
    full_name: str
    department: Optional[str] = None
    is_active: bool = True


Operator = Union[UserOperator, VolunteerOperator]


def describe(operator: Operator) -> dict:
    return {
        "id": operator.operator_id,
        "type": operator.operator_type.value,
        "name": operator.full_name,
    }
