from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Participant
from .repository import ParticipantRepository

PARTICIPANT_COLUMNS = "user_id, full_name, email, role, department, is_active"


def to_participant(row: dict) -> Participant:
    return Participant(
        participant_id=int(row["user_id"]),
        full_name=row["full_name"],
        email=row.get("email"),
        department=row.get("department"),
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLParticipantRepository(ParticipantRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, participant_id: int) -> Optional[Participant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {PARTICIPANT_COLUMNS}
                FROM users
                WHERE user_id=%s
                """,
                (participant_id,),
            )
            row = fetchone(cur)
            return to_participant(row) if row else None
