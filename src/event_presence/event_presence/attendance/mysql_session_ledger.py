from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import SessionStatus
from ..core.exceptions import SessionConflict
from ..database.mysql_base import fetchall, fetchone, is_duplicate_key
from .model import AttendanceSession, LedgerTotals
from .repository import SessionLedger

SESSION_COLUMNS = """
    session_id, participant_id, event_id, check_in_time, check_out_time, status,
    is_nullified, nullified_duration, nullified_reason, event_stop_time
"""


def to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        participant_id=int(r["participant_id"]),
        event_id=int(r["event_id"]),
        check_in_time=r["check_in_time"],
        check_out_time=r.get("check_out_time"),
        status=SessionStatus(r["status"]),
        is_nullified=bool(r.get("is_nullified")),
        nullified_duration=r.get("nullified_duration"),
        nullified_reason=r.get("nullified_reason"),
        event_stop_time=r.get("event_stop_time"),
    )


class MySQLSessionLedger(SessionLedger):
    """Attendance ledger on the ``attendance_sessions`` table.

    The table carries a generated ``open_marker`` column that is 1 only for
    checked-in rows; a unique key over (event_id, participant_id, open_marker)
    makes a second open session impossible at the storage level.
    """

    def __init__(self, cur):
        self._cur = cur

    def find_open(self, participant_id: int, event_id: int) -> Optional[AttendanceSession]:
        self._cur.execute(
            f"""
            SELECT {SESSION_COLUMNS}
            FROM attendance_sessions
            WHERE participant_id=%s AND event_id=%s AND status=%s
            FOR UPDATE
            """,
            (participant_id, event_id, SessionStatus.CHECKED_IN.value),
        )
        r = fetchone(self._cur)
        return to_session(r) if r else None

    def latest_closed(self, participant_id: int, event_id: int) -> Optional[AttendanceSession]:
        self._cur.execute(
            f"""
            SELECT {SESSION_COLUMNS}
            FROM attendance_sessions
            WHERE participant_id=%s AND event_id=%s AND status<>%s
            ORDER BY check_out_time DESC, session_id DESC
            LIMIT 1
            """,
            (participant_id, event_id, SessionStatus.CHECKED_IN.value),
        )
        r = fetchone(self._cur)
        return to_session(r) if r else None

    def open_session(self, *, participant_id: int, event_id: int, check_in_time: datetime) -> AttendanceSession:
        try:
            self._cur.execute(
                """
                INSERT INTO attendance_sessions(participant_id, event_id, check_in_time, status)
                VALUES(%s,%s,%s,%s)
                """,
                (participant_id, event_id, check_in_time, SessionStatus.CHECKED_IN.value),
            )
        except mysql.connector.IntegrityError as exc:
            if is_duplicate_key(exc):
                raise SessionConflict("Participant already has an open session for this event") from exc
            raise
        return AttendanceSession(
            session_id=int(self._cur.lastrowid),
            participant_id=participant_id,
            event_id=event_id,
            check_in_time=check_in_time,
            check_out_time=None,
            status=SessionStatus.CHECKED_IN,
        )

    def close_session(self, *, session_id: int, check_out_time: datetime) -> bool:
        self._cur.execute(
            """
            UPDATE attendance_sessions
            SET check_out_time=%s, status=%s
            WHERE session_id=%s AND status=%s
            """,
            (check_out_time, SessionStatus.CHECKED_OUT.value, session_id, SessionStatus.CHECKED_IN.value),
        )
        return self._cur.rowcount > 0

    def list_open_for_event(self, event_id: int, *, lock: bool = False) -> Sequence[AttendanceSession]:
        suffix = "FOR UPDATE" if lock else ""
        self._cur.execute(
            f"""
            SELECT {SESSION_COLUMNS}
            FROM attendance_sessions
            WHERE event_id=%s AND status=%s
            ORDER BY participant_id ASC
            {suffix}
            """,
            (event_id, SessionStatus.CHECKED_IN.value),
        )
        return [to_session(r) for r in fetchall(self._cur)]

    def auto_close(
        self,
        *,
        session_id: int,
        stop_time: datetime,
        nullified_duration: int,
        reason: str,
    ) -> bool:
        self._cur.execute(
            """
            UPDATE attendance_sessions
            SET check_out_time=%s, status=%s, event_stop_time=%s,
                is_nullified=1, nullified_duration=%s, nullified_reason=%s
            WHERE session_id=%s AND status=%s
            """,
            (
                stop_time,
                SessionStatus.AUTO_CHECKOUT.value,
                stop_time,
                int(nullified_duration),
                reason,
                session_id,
                SessionStatus.CHECKED_IN.value,
            ),
        )
        return self._cur.rowcount > 0

    def totals_for_event(self, event_id: int) -> Sequence[LedgerTotals]:
        self._cur.execute(
            """
            SELECT
                participant_id,
                COALESCE(SUM(CASE WHEN status='checked-out'
                    THEN TIMESTAMPDIFF(SECOND, check_in_time, check_out_time) ELSE 0 END), 0) AS valid_seconds,
                COALESCE(SUM(CASE WHEN status='auto-checkout'
                    THEN COALESCE(nullified_duration, 0) ELSE 0 END), 0) AS nullified_seconds,
                SUM(CASE WHEN status<>'checked-in' THEN 1 ELSE 0 END) AS closed_count,
                SUM(CASE WHEN status='auto-checkout' THEN 1 ELSE 0 END) AS nullified_count,
                MAX(CASE WHEN status='checked-in' THEN 1 ELSE 0 END) AS has_open
            FROM attendance_sessions
            WHERE event_id=%s
            GROUP BY participant_id
            ORDER BY participant_id
            """,
            (event_id,),
        )
        return [
            LedgerTotals(
                event_id=event_id,
                participant_id=int(r["participant_id"]),
                total_valid_duration=int(r["valid_seconds"] or 0),
                total_nullified_duration=int(r["nullified_seconds"] or 0),
                total_sessions=int(r["closed_count"] or 0),
                nullified_sessions=int(r["nullified_count"] or 0),
                has_open_session=bool(r["has_open"]),
            )
            for r in fetchall(self._cur)
        ]
