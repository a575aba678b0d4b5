"""Compare attendance summaries with the session ledger for one event.

Usage: python scripts/reconcile_summaries.py <event_id>

Exits with status 1 when any summary drifted. Nothing is repaired.
"""
from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "event_presence"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from dotenv import load_dotenv

from config import get_settings_module

from event_presence.main import container_from_settings


def main(argv: list[str]) -> int:
    if len(argv) != 1 or not argv[0].isdigit():
        print(__doc__)
        return 2

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    event_id = int(argv[0])
    drift = container_from_settings(settings).reconciler.find_drift(event_id)
    if not drift:
        print(f"OK: event {event_id} summaries match the ledger")
        return 0

    for d in drift:
        print(f"participant={d.participant_id} field={d.field} stored={d.stored} expected={d.expected}")
    print(f"DRIFT: {len(drift)} mismatched fields in event {event_id}")
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
