import os

from .config import *  # noqa: F401,F403

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()

# If enabled, the app applies database/schema.sql on startup (idempotent).
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also load database/seed.sql on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
