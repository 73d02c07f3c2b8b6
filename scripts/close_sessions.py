"""Close every open session whose scheduled end has passed.

Meant for cron, e.g. every 5 minutes: ``python scripts/close_sessions.py``.
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.campus_attendance.campus_attendance.container import build_container

logger = logging.getLogger("scripts.close_sessions")


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    closed = container.session_service.close_elapsed_sessions()
    logger.info("Closed %s session(s)", len(closed))
    return 0


if __name__ == "__main__":
    sys.exit(main())
