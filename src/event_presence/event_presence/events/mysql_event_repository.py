from __future__ import annotations

from typing import Optional

from ..core.enums import LockMode
from ..database.mysql_base import fetchone
from .model import Event
from .repository import EventRepository

_LOCK_CLAUSES = {
    None: "",
    LockMode.SHARE: "LOCK IN SHARE MODE",
    LockMode.UPDATE: "FOR UPDATE",
}


class MySQLEventRepository(EventRepository):
    def __init__(self, cur):
        self._cur = cur

    def get(self, event_id: int, *, lock: Optional[LockMode] = None) -> Optional[Event]:
        self._cur.execute(
            f"""
            SELECT event_id, name, start_date, end_date, is_active, manually_started, manually_ended
            FROM events
            WHERE event_id=%s
            {_LOCK_CLAUSES[lock]}
            """,
            (event_id,),
        )
        r = fetchone(self._cur)
        if not r:
            return None
        return Event(
            event_id=int(r["event_id"]),
            name=r["name"],
            start_date=r.get("start_date"),
            end_date=r.get("end_date"),
            is_active=bool(r.get("is_active")),
            manually_started=bool(r.get("manually_started")),
            manually_ended=bool(r.get("manually_ended")),
        )

    def set_flags(self, event_id: int, *, is_active: bool, manually_started: bool, manually_ended: bool) -> None:
        self._cur.execute(
            """
            UPDATE events
            SET is_active=%s, manually_started=%s, manually_ended=%s
            WHERE event_id=%s
            """,
            (int(is_active), int(manually_started), int(manually_ended), event_id),
        )
