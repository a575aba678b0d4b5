from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..core.constants import DEFAULT_OPERATOR_CACHE_TTL_SECONDS
from ..core.enums import OperatorType, Role
from ..core.exceptions import OperatorNotResolved
from .model import Operator
from .repository import OperatorRepository

logger = logging.getLogger(__name__)

SCANNER_ROLES = frozenset({Role.ADMIN, Role.STAFF})


@dataclass(frozen=True)
class _CacheEntry:
    operator: Operator
    expires_at: float


class OperatorService:
    """Resolve a scanner operator once into ``UserOperator`` or ``VolunteerOperator``.

    Resolved identities are cached per process with an explicit TTL. The cache
    only saves identity lookups; it never answers anything about attendance.
    An identity that cannot be resolved is rejected, there is no fallback
    operator type.
    """

    def __init__(
        self,
        operators: OperatorRepository,
        *,
        cache_ttl_seconds: int = DEFAULT_OPERATOR_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._operators = operators
        self._ttl = max(0, int(cache_ttl_seconds))
        self._clock = clock
        self._cache: dict[tuple[OperatorType, int], _CacheEntry] = {}
        self._lock = threading.Lock()

    def resolve(self, operator_type: object, operator_id: object) -> Operator:
        try:
            kind = OperatorType(operator_type)
        except ValueError:
            raise OperatorNotResolved(f"Unknown operator type: {operator_type!r}")
        try:
            oid = int(operator_id)
        except (TypeError, ValueError):
            raise OperatorNotResolved("Operator id is missing or invalid")

        key = (kind, oid)
        cached = self._from_cache(key)
        if cached is not None:
            return cached

        operator = self._lookup(kind, oid)
        if self._ttl:
            with self._lock:
                self._cache[key] = _CacheEntry(operator=operator, expires_at=self._clock() + self._ttl)
        return operator

    def invalidate(self, operator_type: Optional[OperatorType] = None, operator_id: Optional[int] = None) -> None:
        with self._lock:
            if operator_type is None:
                self._cache.clear()
                return
            self._cache.pop((OperatorType(operator_type), int(operator_id)), None)

    def _from_cache(self, key: tuple[OperatorType, int]) -> Optional[Operator]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._cache[key]
                return None
            return entry.operator

    def _lookup(self, kind: OperatorType, oid: int) -> Operator:
        if kind is OperatorType.USER:
            operator = self._operators.get_user(oid)
            if operator is not None and operator.role not in SCANNER_ROLES:
                logger.warning("user %s with role %s tried to operate a scanner", oid, operator.role.value)
                raise OperatorNotResolved("This account is not allowed to scan")
        else:
            operator = self._operators.get_volunteer(oid)

        if operator is None or not operator.is_active:
            raise OperatorNotResolved(f"No active {kind.value} operator with id {oid}")
        return operator
