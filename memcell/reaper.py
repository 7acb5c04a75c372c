import logging
import threading
from typing import Optional

from memcell.datastore import DataStore

logger = logging.getLogger(__name__)


class Reaper:
    """
    Calls `store.delete_expired()` every `interval` seconds on a daemon thread.

    A non-positive interval disables the sweep entirely: start() is then a
    no-op and only lazy expiry on read applies.
    """
    def __init__(self, store: DataStore, interval: float):
        self._store = store
        self._interval = interval
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "Reaper":
        if self._interval <= 0:
            logger.info("Reaper disabled (interval <= 0), relying on lazy expiry")
            return self
        if self._thread is not None:
            return self

        self._thread = threading.Thread(target=self._loop, name="memcell-reaper", daemon=True)
        self._thread.start()
        logger.info(f"Reaper started, sweeping every {self._interval}s")
        return self

    def stop(self, timeout: Optional[float] = None):
        """
        Signal the sweep loop to exit and wait for it. Safe to call more than once.
        """
        if self._stopped.is_set():
            return
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)
            logger.info("Reaper stopped")

    def _loop(self):
        # wait() returns True as soon as stop() is called
        while not self._stopped.wait(self._interval):
            try:
                self._store.delete_expired()
            except Exception:
                logger.exception("Expired key sweep failed")

    def __enter__(self) -> "Reaper":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
