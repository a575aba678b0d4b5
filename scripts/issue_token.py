"""Print a signed QR token for a participant or a stall.

Usage: python scripts/issue_token.py participant|stall <id> <event_id>
"""
from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "event_presence"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from dotenv import load_dotenv

from config import get_settings_module

from event_presence.tokens.verifier import ScanTokenIssuer


def main(argv: list[str]) -> int:
    if len(argv) != 3 or argv[0] not in {"participant", "stall"}:
        print(__doc__)
        return 2

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    issuer = ScanTokenIssuer(settings.QR_SECRET)

    kind, subject_id, event_id = argv[0], int(argv[1]), int(argv[2])
    if kind == "participant":
        print(issuer.issue_participant_token(subject_id, event_id))
    else:
        print(issuer.issue_stall_token(subject_id, event_id))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
