from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_RELOAD_INTERVAL = 6.0


class ReloadScheduler:
    """Periodically invokes a reload check on a daemon thread.

    `tick()` runs one check on the caller's thread, for hosts that drive
    reloads from their own loop.
    """

    def __init__(self, check: Callable[[], object], interval: float | None = DEFAULT_RELOAD_INTERVAL, name: str = "serialgate-reload"):
        self._check = check
        self.interval = interval
        self.name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.interval) and self.interval > 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            if self.running:
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            self._stop.set()
            thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def tick(self) -> object:
        return self._check()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self._check()
            except Exception:
                # Keep the timer alive; the check reports its own reload failures.
                logger.exception("reload check crashed in %s", self.name)
