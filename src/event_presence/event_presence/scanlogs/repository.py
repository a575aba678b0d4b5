from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import NewScanLog, ScanLogEntry, ScanLogFilter


class ScanLogRepository(Protocol):
    """Append-only audit trail. The only update is flagging a record."""

    def append(self, entry: NewScanLog) -> int:
        raise NotImplementedError

    def get(self, scan_log_id: int) -> Optional[ScanLogEntry]:
        raise NotImplementedError

    def flag(self, scan_log_id: int, *, reason: str) -> bool:
        raise NotImplementedError

    def list(self, flt: ScanLogFilter, *, offset: int, limit: int) -> Sequence[ScanLogEntry]:
        raise NotImplementedError
