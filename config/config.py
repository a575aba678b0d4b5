import os


def _int_env(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


class Config:
    """Settings shared by every environment; each module below overrides a few."""

    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key"

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = _int_env("DB_PORT", 3306)
    DB_NAME = os.environ.get("DB_NAME", "event_presence")

    # HS256 key for participant/stall QR tokens. Must match the issuing side.
    QR_SECRET = os.environ.get("QR_SECRET", "dev-qr-secret")
    QR_TOKEN_LEEWAY_SECONDS = _int_env("QR_TOKEN_LEEWAY_SECONDS", 0)

    LOCK_WAIT_TIMEOUT_SECONDS = _int_env("LOCK_WAIT_TIMEOUT_SECONDS", 5)
    SCAN_MIN_CHECKOUT_SECONDS = _int_env("SCAN_MIN_CHECKOUT_SECONDS", 30)
    SCAN_RECHECKIN_COOLDOWN_SECONDS = _int_env("SCAN_RECHECKIN_COOLDOWN_SECONDS", 60)
    OPERATOR_CACHE_TTL_SECONDS = _int_env("OPERATOR_CACHE_TTL_SECONDS", 300)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
    AUTO_SEED_DB = bool(int(os.environ.get("AUTO_SEED_DB", "0")))


SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}

QR_SECRET = Config.QR_SECRET
QR_TOKEN_LEEWAY_SECONDS = Config.QR_TOKEN_LEEWAY_SECONDS
LOCK_WAIT_TIMEOUT_SECONDS = Config.LOCK_WAIT_TIMEOUT_SECONDS
SCAN_MIN_CHECKOUT_SECONDS = Config.SCAN_MIN_CHECKOUT_SECONDS
SCAN_RECHECKIN_COOLDOWN_SECONDS = Config.SCAN_RECHECKIN_COOLDOWN_SECONDS
OPERATOR_CACHE_TTL_SECONDS = Config.OPERATOR_CACHE_TTL_SECONDS
LOG_LEVEL = Config.LOG_LEVEL

DEBUG = bool(int(os.environ.get("DEBUG", "0")))

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_DB = Config.AUTO_SEED_DB
