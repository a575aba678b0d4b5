from __future__ import annotations

from typing import Optional, Sequence

from ..attendance.model import AttendanceSession
from ..attendance.mysql_session_ledger import SESSION_COLUMNS, to_session
from ..core.enums import OperatorType, Role, SessionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..events.model import Event
from ..events.mysql_event_repository import MySQLEventRepository
from ..participants.model import Participant
from ..participants.mysql_participant_repository import MySQLParticipantRepository, to_participant
from .model import DepartmentMember, DepartmentStat, OperatorActivity, ParticipantRanking, SessionCounts
from .repository import AnalyticsRepository


class MySQLAnalyticsRepository(AnalyticsRepository):
    """Plain SELECTs on short-lived connections.

    InnoDB consistent reads take no row locks, so these queries never block
    a scan in progress.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_event(self, event_id: int) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            return MySQLEventRepository(cur).get(event_id)

    def top_participants(self, event_id: int, *, offset: int, limit: int) -> Sequence[ParticipantRanking]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.participant_id, u.full_name, u.department,
                       s.total_valid_duration, s.total_sessions,
                       s.total_nullified_duration, s.nullified_sessions, s.has_improper_checkouts
                FROM attendance_summaries s
                JOIN users u ON u.user_id = s.participant_id
                WHERE s.event_id=%s
                ORDER BY s.total_valid_duration DESC, s.participant_id ASC
                LIMIT %s OFFSET %s
                """,
                (event_id, int(limit), int(offset)),
            )
            return [
                ParticipantRanking(
                    participant_id=int(r["participant_id"]),
                    full_name=r["full_name"],
                    department=r.get("department"),
                    total_valid_duration=int(r["total_valid_duration"] or 0),
                    total_sessions=int(r["total_sessions"] or 0),
                    total_nullified_duration=int(r["total_nullified_duration"] or 0),
                    nullified_sessions=int(r["nullified_sessions"] or 0),
                    has_improper_checkouts=bool(r.get("has_improper_checkouts")),
                )
                for r in fetchall(cur)
            ]

    def count_participants(self, event_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total
                FROM attendance_summaries s
                JOIN users u ON u.user_id = s.participant_id
                WHERE s.event_id=%s
                """,
                (event_id,),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def department_counts(self, event_id: int) -> Sequence[DepartmentStat]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.department,
                       COUNT(*) AS enrolled,
                       SUM(CASE WHEN a.participant_id IS NOT NULL THEN 1 ELSE 0 END) AS attended
                FROM users u
                LEFT JOIN (
                    SELECT DISTINCT participant_id
                    FROM attendance_sessions
                    WHERE event_id=%s
                ) a ON a.participant_id = u.user_id
                WHERE u.role=%s AND u.is_active=1 AND u.department IS NOT NULL
                GROUP BY u.department
                """,
                (event_id, Role.PARTICIPANT.value),
            )
            return [
                DepartmentStat(
                    department=r["department"],
                    enrolled=int(r["enrolled"] or 0),
                    attended=int(r["attended"] or 0),
                )
                for r in fetchall(cur)
            ]

    def session_counts(self, event_id: int) -> SessionCounts:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    COUNT(*) AS total_sessions,
                    COALESCE(SUM(status=%s), 0) AS open_sessions,
                    COALESCE(SUM(status=%s), 0) AS closed_sessions,
                    COALESCE(SUM(status=%s), 0) AS nullified_sessions,
                    COUNT(DISTINCT participant_id) AS distinct_attendees,
                    COALESCE(SUM(CASE WHEN status=%s
                        THEN TIMESTAMPDIFF(SECOND, check_in_time, check_out_time) ELSE 0 END), 0) AS valid_seconds,
                    COALESCE(SUM(COALESCE(nullified_duration, 0)), 0) AS nullified_seconds
                FROM attendance_sessions
                WHERE event_id=%s
                """,
                (
                    SessionStatus.CHECKED_IN.value,
                    SessionStatus.CHECKED_OUT.value,
                    SessionStatus.AUTO_CHECKOUT.value,
                    SessionStatus.CHECKED_OUT.value,
                    event_id,
                ),
            )
            r = fetchone(cur)
            if not r:
                return SessionCounts()
            return SessionCounts(
                total_sessions=int(r["total_sessions"] or 0),
                open_sessions=int(r["open_sessions"] or 0),
                closed_sessions=int(r["closed_sessions"] or 0),
                nullified_sessions=int(r["nullified_sessions"] or 0),
                distinct_attendees=int(r["distinct_attendees"] or 0),
                total_valid_seconds=int(r["valid_seconds"] or 0),
                total_nullified_seconds=int(r["nullified_seconds"] or 0),
            )

    def operator_activity(self, event_id: int, *, offset: int, limit: int) -> Sequence[OperatorActivity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT l.operator_type, l.operator_id,
                       COALESCE(u.full_name, v.full_name) AS operator_name,
                       COUNT(*) AS total_scans,
                       SUM(l.status='success') AS success_count,
                       SUM(l.status='failed') AS failed_count
                FROM scan_logs l
                LEFT JOIN users u ON l.operator_type='user' AND u.user_id = l.operator_id
                LEFT JOIN volunteers v ON l.operator_type='volunteer' AND v.volunteer_id = l.operator_id
                WHERE l.event_id=%s
                GROUP BY l.operator_type, l.operator_id, operator_name
                ORDER BY total_scans DESC, l.operator_type ASC, l.operator_id ASC
                LIMIT %s OFFSET %s
                """,
                (event_id, int(limit), int(offset)),
            )
            return [
                OperatorActivity(
                    operator_type=OperatorType(r["operator_type"]),
                    operator_id=int(r["operator_id"]),
                    operator_name=r.get("operator_name"),
                    total_scans=int(r["total_scans"] or 0),
                    success_count=int(r["success_count"] or 0),
                    failed_count=int(r["failed_count"] or 0),
                )
                for r in fetchall(cur)
            ]

    def count_operators(self, event_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total
                FROM (
                    SELECT DISTINCT operator_type, operator_id
                    FROM scan_logs
                    WHERE event_id=%s
                ) ops
                """,
                (event_id,),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def get_participant(self, participant_id: int) -> Optional[Participant]:
        return MySQLParticipantRepository(self._conn_factory).get_by_id(participant_id)

    def participant_sessions(self, participant_id: int, *, event_id: Optional[int] = None) -> Sequence[AttendanceSession]:
        sql = f"SELECT {SESSION_COLUMNS} FROM attendance_sessions WHERE participant_id=%s"
        params: list = [participant_id]
        if event_id is not None:
            sql += " AND event_id=%s"
            params.append(event_id)
        sql += " ORDER BY check_in_time DESC, session_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [to_session(r) for r in fetchall(cur)]

    def department_members(self, event_id: int, department: str) -> Sequence[DepartmentMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.full_name, u.email, u.role, u.department, u.is_active,
                       EXISTS(
                           SELECT 1 FROM attendance_sessions a
                           WHERE a.event_id=%s AND a.participant_id = u.user_id
                       ) AS attended
                FROM users u
                WHERE u.role=%s AND u.is_active=1 AND u.department=%s
                ORDER BY u.full_name ASC, u.user_id ASC
                """,
                (event_id, Role.PARTICIPANT.value, department),
            )
            return [DepartmentMember(participant=to_participant(r), attended=bool(r["attended"])) for r in fetchall(cur)]
