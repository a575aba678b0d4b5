from __future__ import annotations

from typing import ContextManager, Protocol

from ..attendance.repository import SessionLedger, SummaryStore
from ..events.repository import EventRepository
from ..scanlogs.repository import ScanLogRepository


class Transaction(Protocol):
    """Repositories sharing one database transaction."""

    events: EventRepository
    sessions: SessionLedger
    summaries: SummaryStore
    scan_logs: ScanLogRepository


class UnitOfWork(Protocol):
    def begin(self) -> ContextManager[Transaction]:
        """Open a transaction.

        Commits when the block exits normally and rolls back on any exception.
        Lock wait timeouts and deadlocks surface as ``Busy``.
        """

        raise NotImplementedError
