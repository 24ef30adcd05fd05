"""Periodically refreshed, thread-safe lookup tables.

A Directory owns one dict that is rebuilt from scratch by a fetch function on
every tick and swapped in whole. Readers never see a half-built dict and are
never blocked by a slow fetch, only by the swap itself.

Closing a directory twice raises RuntimeError. This is a usage error, not an
operational one, and callers should close each directory exactly once.
"""
from __future__ import annotations
import logging, threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generic, Iterable, Optional, Tuple, TypeVar

log = logging.getLogger(__name__)

V = TypeVar("V")

class SourceError(Exception):
    """A data source could not be read."""

class RWLock:
    """Many readers or one writer. Waiting writers hold off new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self):
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()

class Directory(Generic[V]):
    def __init__(self, fetch: Callable[[], Iterable[V]], interval: float,
                 key: Callable[[V], str], name: str = "directory", autostart: bool = True):
        if interval <= 0:
            raise ValueError(f"{name}: refresh interval must be positive, got {interval!r}")
        self.name = name
        self.interval = interval
        self._fetch = fetch
        self._key = key
        self._lock = RWLock()
        self._entries: Dict[str, V] = {}
        self._ready = False
        self._done = threading.Event()
        self._closed = False
        self._thread: Optional[threading.Thread] = None
        if autostart:
            self.start()

    def start(self):
        if self._thread is not None:
            raise RuntimeError(f"{self.name}: refresh loop already started")
        self._thread = threading.Thread(target=self._loop, name=f"refresh-{self.name}", daemon=True)
        self._thread.start()

    def _loop(self):
        while not self._done.is_set():
            self.refresh()
            if self._done.wait(self.interval):
                return

    def refresh(self) -> bool:
        try:
            items = list(self._fetch())
        except Exception as e:
            log.warning("%s: fetch failed, keeping %d cached entries: %s", self.name, len(self), e)
            return False
        entries: Dict[str, V] = {}
        for item in items:
            entries[self._key(item)] = item
        with self._lock.write_locked():
            self._entries = entries
            self._ready = True
        log.debug("%s: refreshed, %d entries", self.name, len(entries))
        return True

    def lookup(self, key: str) -> Tuple[Optional[V], bool]:
        with self._lock.read_locked():
            entries = self._entries
        if key in entries:
            return entries[key], True
        return None, False

    def values(self) -> list[V]:
        with self._lock.read_locked():
            entries = self._entries
        return [entries[k] for k in sorted(entries)]

    @property
    def ready(self) -> bool:
        with self._lock.read_locked():
            return self._ready

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._entries)

    def close(self):
        if self._closed:
            raise RuntimeError(f"{self.name}: directory already closed")
        self._closed = True
        self._done.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()

class NoopDirectory:
    """Stand-in for an unconfigured source; every lookup misses."""

    ready = True

    def __init__(self, name: str = "noop"):
        self.name = name
        self._closed = False

    def lookup(self, key: str) -> Tuple[Any, bool]:
        return None, False

    def values(self) -> list:
        return []

    def refresh(self) -> bool:
        return True

    def __len__(self) -> int:
        return 0

    def close(self):
        if self._closed:
            raise RuntimeError(f"{self.name}: directory already closed")
        self._closed = True
