from __future__ import annotations

from datetime import date, datetime
from typing import Sequence

from ..core.enums import PresenceStatus
from ..database.mysql_base import fetchall, fetchone
from .model import AttendanceSummary
from .repository import SummaryStore

_COLUMNS = """
    event_id, participant_id, total_valid_duration, total_nullified_duration,
    total_sessions, nullified_sessions, last_check_in_time, current_status,
    has_improper_checkouts, last_activity_date
"""


def _to_summary(r: dict) -> AttendanceSummary:
    return AttendanceSummary(
        event_id=int(r["event_id"]),
        participant_id=int(r["participant_id"]),
        total_valid_duration=int(r["total_valid_duration"] or 0),
        total_nullified_duration=int(r["total_nullified_duration"] or 0),
        total_sessions=int(r["total_sessions"] or 0),
        nullified_sessions=int(r["nullified_sessions"] or 0),
        last_check_in_time=r.get("last_check_in_time"),
        current_status=PresenceStatus(r["current_status"]),
        has_improper_checkouts=bool(r.get("has_improper_checkouts")),
        last_activity_date=r.get("last_activity_date"),
    )


class MySQLSummaryStore(SummaryStore):
    """Aggregate rows in ``attendance_summaries``, one per (event, participant).

    Totals only ever move through ``col = col + VALUES(col)`` upserts, so two
    writers never overwrite each other's increments.
    """

    def __init__(self, cur):
        self._cur = cur

    def lock_pair(self, participant_id: int, event_id: int) -> None:
        self._cur.execute(
            """
            INSERT INTO attendance_summaries(event_id, participant_id)
            VALUES(%s,%s)
            ON DUPLICATE KEY UPDATE event_id=event_id
            """,
            (event_id, participant_id),
        )
        self._cur.execute(
            """
            SELECT summary_id
            FROM attendance_summaries
            WHERE event_id=%s AND participant_id=%s
            FOR UPDATE
            """,
            (event_id, participant_id),
        )
        fetchone(self._cur)

    def list_for_event(self, event_id: int) -> Sequence[AttendanceSummary]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM attendance_summaries
            WHERE event_id=%s
            ORDER BY participant_id
            """,
            (event_id,),
        )
        return [_to_summary(r) for r in fetchall(self._cur)]

    def record_check_in(
        self, *, participant_id: int, event_id: int, check_in_time: datetime, activity_date: date
    ) -> None:
        self._cur.execute(
            """
            INSERT INTO attendance_summaries(
                event_id, participant_id, last_check_in_time, current_status, last_activity_date
            )
            VALUES(%s,%s,%s,%s,%s)
            ON DUPLICATE KEY UPDATE
                last_check_in_time=VALUES(last_check_in_time),
                current_status=VALUES(current_status),
                last_activity_date=VALUES(last_activity_date)
            """,
            (event_id, participant_id, check_in_time, PresenceStatus.CHECKED_IN.value, activity_date),
        )

    def add_valid_session(
        self, *, participant_id: int, event_id: int, duration_seconds: int, activity_date: date
    ) -> None:
        self._cur.execute(
            """
            INSERT INTO attendance_summaries(
                event_id, participant_id, total_valid_duration, total_sessions,
                current_status, last_activity_date
            )
            VALUES(%s,%s,%s,1,%s,%s)
            ON DUPLICATE KEY UPDATE
                total_valid_duration=total_valid_duration + VALUES(total_valid_duration),
                total_sessions=total_sessions + 1,
                current_status=VALUES(current_status),
                last_activity_date=VALUES(last_activity_date)
            """,
            (event_id, participant_id, int(duration_seconds), PresenceStatus.CHECKED_OUT.value, activity_date),
        )

    def add_nullified_session(
        self, *, participant_id: int, event_id: int, duration_seconds: int, activity_date: date
    ) -> None:
        self._cur.execute(
            """
            INSERT INTO attendance_summaries(
                event_id, participant_id, total_nullified_duration, nullified_sessions, total_sessions,
                has_improper_checkouts, current_status, last_activity_date
            )
            VALUES(%s,%s,%s,1,1,1,%s,%s)
            ON DUPLICATE KEY UPDATE
                total_nullified_duration=total_nullified_duration + VALUES(total_nullified_duration),
                nullified_sessions=nullified_sessions + 1,
                total_sessions=total_sessions + 1,
                has_improper_checkouts=1,
                current_status=VALUES(current_status),
                last_activity_date=VALUES(last_activity_date)
            """,
            (event_id, participant_id, int(duration_seconds), PresenceStatus.CHECKED_OUT.value, activity_date),
        )
