"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS = 5
DEFAULT_MIN_CHECKOUT_SECONDS = 30
DEFAULT_RECHECKIN_COOLDOWN_SECONDS = 60
DEFAULT_OPERATOR_CACHE_TTL_SECONDS = 300

PARTICIPANT_TOKEN_TTL_HOURS = 24
STALL_TOKEN_TTL_DAYS = 365

FORCE_END_NULLIFIED_REASON = "event force-ended"

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
DEFAULT_SCAN_LOG_LIMIT = 50
