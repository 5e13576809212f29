"""Run the auto-checkout sweep once (for cron) or continuously with --loop."""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
import time
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_payroll.attendance_payroll.container import build_container


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--loop", action="store_true", help="keep sweeping at the configured interval")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        attendance=getattr(settings, "ATTENDANCE", {}),
        payroll=getattr(settings, "PAYROLL", {}),
    )
    scheduler = container.auto_checkout_scheduler

    if not args.loop:
        closed = scheduler.tick()
        print(f"OK: auto-checkout closed {len(closed)} record(s); last swept at {scheduler.last_swept_at}")
        return

    scheduler.start()
    try:
        while scheduler.is_running:
            time.sleep(1.0)
    except KeyboardInterrupt:
        scheduler.stop()


if __name__ == "__main__":
    main()
