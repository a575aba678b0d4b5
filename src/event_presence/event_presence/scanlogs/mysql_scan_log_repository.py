from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import OperatorType, ScanOutcome, ScanType
from ..database.mysql_base import fetchall, fetchone
from .model import NewScanLog, ScanLogEntry, ScanLogFilter
from .repository import ScanLogRepository

_COLUMNS = """
    scan_log_id, scan_time, scan_type, status, operator_id, operator_type,
    participant_id, event_id, gate, error_message, flagged, flag_reason
"""


def _to_entry(r: dict) -> ScanLogEntry:
    return ScanLogEntry(
        scan_log_id=int(r["scan_log_id"]),
        scan_time=r["scan_time"],
        scan_type=ScanType(r["scan_type"]),
        status=ScanOutcome(r["status"]),
        operator_id=int(r["operator_id"]),
        operator_type=OperatorType(r["operator_type"]),
        participant_id=r.get("participant_id"),
        event_id=r.get("event_id"),
        gate=r.get("gate"),
        error_message=r.get("error_message"),
        flagged=bool(r.get("flagged")),
        flag_reason=r.get("flag_reason"),
    )


class MySQLScanLogRepository(ScanLogRepository):
    def __init__(self, cur):
        self._cur = cur

    def append(self, entry: NewScanLog) -> int:
        self._cur.execute(
            """
            INSERT INTO scan_logs(
                scan_time, scan_type, status, operator_id, operator_type,
                participant_id, event_id, gate, error_message
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                entry.scan_time,
                entry.scan_type.value,
                entry.status.value,
                entry.operator_id,
                entry.operator_type.value,
                entry.participant_id,
                entry.event_id,
                entry.gate,
                entry.error_message,
            ),
        )
        return int(self._cur.lastrowid)

    def get(self, scan_log_id: int) -> Optional[ScanLogEntry]:
        self._cur.execute(f"SELECT {_COLUMNS} FROM scan_logs WHERE scan_log_id=%s", (scan_log_id,))
        r = fetchone(self._cur)
        return _to_entry(r) if r else None

    def flag(self, scan_log_id: int, *, reason: str) -> bool:
        self._cur.execute(
            "UPDATE scan_logs SET flagged=1, flag_reason=%s WHERE scan_log_id=%s",
            (reason, scan_log_id),
        )
        return self._cur.rowcount > 0

    def list(self, flt: ScanLogFilter, *, offset: int, limit: int) -> Sequence[ScanLogEntry]:
        clauses: list[str] = []
        params: list[object] = []

        if flt.event_id is not None:
            clauses.append("event_id=%s")
            params.append(int(flt.event_id))
        if flt.participant_id is not None:
            clauses.append("participant_id=%s")
            params.append(int(flt.participant_id))
        if flt.scan_type is not None:
            clauses.append("scan_type=%s")
            params.append(flt.scan_type.value)
        if flt.status is not None:
            clauses.append("status=%s")
            params.append(flt.status.value)
        if flt.operator_type is not None:
            clauses.append("operator_type=%s")
            params.append(flt.operator_type.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.extend([int(limit), int(offset)])

        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM scan_logs
            {where}
            ORDER BY scan_time DESC, scan_log_id DESC
            LIMIT %s OFFSET %s
            """,
            tuple(params),
        )
        return [_to_entry(r) for r in fetchall(self._cur)]
