from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import UserOperator, VolunteerOperator
from .repository import OperatorRepository


class MySQLOperatorRepository(OperatorRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_user(self, user_id: int) -> Optional[UserOperator]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, full_name, role, department, is_active FROM users WHERE user_id=%s",
                (user_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return UserOperator(
                operator_id=int(row["user_id"]),
                full_name=row["full_name"],
                role=Role(row["role"]),
                department=row.get("department"),
                is_active=bool(row.get("is_active", True)),
            )

    def get_volunteer(self, volunteer_id: int) -> Optional[VolunteerOperator]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT volunteer_id, full_name, department, is_active FROM volunteers WHERE volunteer_id=%s",
                (volunteer_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return VolunteerOperator(
                operator_id=int(row["volunteer_id"]),
                full_name=row["full_name"],
                department=row.get("department"),
                is_active=bool(row.get("is_active", True)),
            )
