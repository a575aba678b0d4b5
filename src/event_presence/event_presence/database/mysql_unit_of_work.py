from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import mysql.connector

from ..attendance.mysql_session_ledger import MySQLSessionLedger
from ..attendance.mysql_summary_store import MySQLSummaryStore
from ..core.constants import DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS
from ..core.exceptions import Busy
from ..events.mysql_event_repository import MySQLEventRepository
from ..scanlogs.mysql_scan_log_repository import MySQLScanLogRepository
from .connection import DatabaseConnection
from .mysql_base import is_lock_error
from .unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class MySQLTransaction:
    def __init__(self, cur):
        self.events = MySQLEventRepository(cur)
        self.sessions = MySQLSessionLedger(cur)
        self.summaries = MySQLSummaryStore(cur)
        self.scan_logs = MySQLScanLogRepository(cur)


class MySQLUnitOfWork(UnitOfWork):
    """One connection and one InnoDB transaction per ``begin()`` block.

    The lock wait timeout is set per connection so that a scan waiting on a
    busy participant row gives up quickly instead of stalling the gate.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, lock_wait_timeout: int = DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS):
        self._conn_factory = conn_factory
        self._lock_wait_timeout = int(lock_wait_timeout)

    @contextmanager
    def begin(self) -> Iterator[MySQLTransaction]:
        conn = self._conn_factory.connect()
        cur = conn.cursor(dictionary=True)
        try:
            cur.execute("SET SESSION innodb_lock_wait_timeout = %s", (self._lock_wait_timeout,))
            conn.start_transaction()
            yield MySQLTransaction(cur)
            conn.commit()
        except mysql.connector.Error as exc:
            conn.rollback()
            if is_lock_error(exc):
                logger.warning("transaction gave up waiting for a lock: %s", exc)
                raise Busy("Scanner is busy, please scan again") from exc
            raise
        except BaseException:
            conn.rollback()
            raise
        finally:
            cur.close()
            conn.close()
