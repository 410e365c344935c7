"""Freshness cache: last-fetch timestamps per (game, platform) key."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional


def _wall_clock_ms() -> float:
    return time.time() * 1000.0


class FreshnessCache:
    """
    Tracks when each (game, platform) key was last fetched.

    ``record_fetch`` is meant to be called *before* the upstream request is
    awaited: a second refresh issued while the first is still in flight then
    sees ``should_fetch() is False`` and does not duplicate the call.
    """

    def __init__(
        self,
        window_ms: int = 30_000,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize cache with a freshness window.

        Args:
            window_ms: Minimum interval between two accepted fetches (default: 30s)
            clock: Returns "now" in milliseconds (default: wall clock)
        """
        self._entries: dict[str, float] = {}
        self._lock = threading.RLock()
        self.window_ms = window_ms
        self._clock = clock or _wall_clock_ms

    def now(self) -> float:
        return self._clock()

    def should_fetch(self, key: str, now: Optional[float] = None) -> bool:
        """
        Whether ``key`` is due for a fetch.

        Args:
            key: Selection key (see core.types.selection_key)
            now: Current time in ms (uses the cache clock if None)

        Returns:
            True if never fetched or the window has elapsed
        """
        now = self.now() if now is None else now
        with self._lock:
            last = self._entries.get(key)
        return last is None or now - last >= self.window_ms

    def record_fetch(self, key: str, now: Optional[float] = None) -> None:
        """Upsert the fetch timestamp for ``key``."""
        now = self.now() if now is None else now
        with self._lock:
            self._entries[key] = now

    def last_fetched(self, key: str) -> Optional[float]:
        with self._lock:
            return self._entries.get(key)

    def forget(self, key: str) -> None:
        """Drop the entry for ``key`` (no-op if absent)."""
        with self._lock:
            self._entries.pop(key, None)
