from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import TokenKind


@dataclass(frozen=True)
class ScanIdentity:
    """Identity carried by a verified scan token."""

    kind: TokenKind
    subject_id: int
    event_id: int
    expires_at: Optional[datetime] = None
