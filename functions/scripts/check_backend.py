"""
Print the remote backend configuration and probe the connection.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from workshop_survey.config import get_settings
from workshop_survey.dependencies import build_submission_store

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Check the survey backend")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Override REMOTE_TIMEOUT_SECONDS for the probe",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    if args.timeout:
        settings = settings.model_copy(update={"remote_timeout_seconds": args.timeout})

    store = build_submission_store(settings)
    status = asyncio.run(store.check_remote())
    print(json.dumps(status, indent=2))
    if not status.get("reachable"):
        logger.error("Remote backend unreachable: %s", status.get("error"))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
