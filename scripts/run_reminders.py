"""Run the shift reminder scheduler without the HTTP server.

Useful when the web app runs with SCHEDULER_AUTOSTART=0 on several workers
and a single process should own reminder dispatch.
"""

from __future__ import annotations

import importlib
import logging
import signal
import sys
from pathlib import Path
from threading import Event

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.timeclock.timeclock.container import build_container


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    container = build_container(
        db_config=getattr(settings, "DB_CONFIG", None),
        storage=str(getattr(settings, "STORAGE_BACKEND", "mysql")),
    )

    done = Event()
    signal.signal(signal.SIGINT, lambda *_: done.set())
    signal.signal(signal.SIGTERM, lambda *_: done.set())

    with container.reminder_task:
        done.wait()


if __name__ == "__main__":
    main()
