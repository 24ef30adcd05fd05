from __future__ import annotations
import logging, threading
from typing import Callable, Optional

from ..collectors.directory import RWLock

log = logging.getLogger(__name__)

class ReportCache:
    """Hands out finished reports.

    Without an interval every get() builds a fresh report under a lock.
    With one, a background thread rebuilds on that interval and get() returns
    the last finished report; the reference is swapped whole, never patched.
    """

    def __init__(self, build: Callable[[], dict], interval: Optional[float] = None, autostart: bool = True):
        self._build = build
        if interval is not None and interval < 0:
            raise ValueError(f"report interval must not be negative, got {interval!r}")
        self.interval = interval or None
        self.lock = threading.Lock()
        self._rw = RWLock()
        self._report: Optional[dict] = None
        self._done = threading.Event()
        self._closed = False
        self._thread: Optional[threading.Thread] = None
        if self.interval and autostart:
            self._thread = threading.Thread(target=self._loop, name="refresh-report", daemon=True)
            self._thread.start()

    @property
    def cached(self) -> bool:
        return self.interval is not None

    def _loop(self):
        while not self._done.wait(self.interval):
            try:
                self.rebuild()
            except Exception as e:
                log.warning("error building report, keeping previous one: %s", e)

    def rebuild(self) -> dict:
        with self.lock:
            report = self._build()
        with self._rw.write_locked():
            self._report = report
        return report

    def get(self) -> dict:
        if not self.cached:
            with self.lock:
                return self._build()
        with self._rw.read_locked():
            report = self._report
        if report is None:
            # nothing cached yet, first caller builds it
            return self.rebuild()
        return report

    def close(self):
        if self._closed:
            raise RuntimeError("report cache already closed")
        self._closed = True
        self._done.set()
        if self._thread is not None:
            self._thread.join()
