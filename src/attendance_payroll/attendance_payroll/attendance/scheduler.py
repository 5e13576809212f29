from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, List

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_SWEEP_INTERVAL_SECONDS
from .auto_checkout import AutoCheckoutService
from .model import AttendanceRecord

logger = logging.getLogger(__name__)


class AutoCheckoutScheduler:
    """In-process polling loop that runs the auto-checkout sweep.

    ``tick()`` runs one sweep and is public so tests and the CLI script can
    drive it without a thread. ``start()``/``stop()`` manage a daemon thread
    that ticks every ``interval_seconds`` until stopped. A single process is
    assumed; concurrent sweeps stay safe because closing is compare-and-swap.
    """

    def __init__(
        self,
        service: AutoCheckoutService,
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._service = service
        self._interval = float(interval_seconds)
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def tick(self) -> List[AttendanceRecord]:
        now = self._clock()
        try:
            return self._service.run_sweep(now)
        except Exception:
            logger.exception("Auto-checkout tick failed at %s", now.isoformat())
            return []

    def start(self) -> None:
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="auto-checkout", daemon=True)
        self._thread.start()
        logger.info("Auto-checkout scheduler started (interval=%ss)", self._interval)

    def stop(self, timeout: float = 30.0) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("Auto-checkout scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def last_swept_at(self) -> datetime | None:
        return self._service.last_swept_at()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(timeout=self._interval)
