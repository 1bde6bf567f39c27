"""In-memory fixed-window counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: one lock guards the whole check-reset-increment sequence.
- Windows are evicted lazily, when a write observes that they have expired.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from quota_gate.adapters.rate_limit.base import AbstractWindowStore, WindowSnapshot, build_window_key

logger = logging.getLogger(__name__)


@dataclass
class _CountEntry:
    count: int
    expires_at: float


class InMemoryWindowStore(AbstractWindowStore):
    """Counter store keeping one ``{count, expires_at}`` record per key.

    A window opens on the first request for a key and ends ``window_seconds``
    later. Requests inside the window never move its end. The first request
    after the end replaces the record with a fresh window whose count is 1.

    Important:
        Denied requests are counted too, so ``count`` can grow past ``limit``
        until the window is replaced.
    """

    def __init__(
        self,
        *,
        max_entries: int | None = 10000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory store.

        Args:
            max_entries: Maximum number of live records (None for unlimited).
                When full, the least recently written record is dropped.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If max_entries is invalid.
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: OrderedDict[str, _CountEntry] = OrderedDict()
        self._evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def check_and_increment(self, identity: str, limit: int, window_seconds: int) -> bool:
        """Count one request for the key and report whether it is allowed.

        Args:
            identity: Opaque client identity.
            limit: Max requests per window.
            window_seconds: Window size in seconds.

        Returns:
            True if the new count is within ``limit``.
        """
        key = build_window_key(identity, limit, window_seconds)
        now = self._clock()

        with self._lock:
            entry = self._entries.get(key)

            if entry is not None and now > entry.expires_at:
                del self._entries[key]
                entry = None
                logger.debug(
                    "window.reset",
                    extra={"limit": limit, "window_s": window_seconds},
                )

            if entry is None:
                self._entries[key] = _CountEntry(count=1, expires_at=now + window_seconds)
                self._evict_if_over_capacity_locked()
                return True

            entry.count += 1
            self._entries.move_to_end(key)
            return entry.count <= limit

    def peek(self, identity: str, limit: int, window_seconds: int) -> WindowSnapshot | None:
        key = build_window_key(identity, limit, window_seconds)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return WindowSnapshot(count=entry.count, expires_at=entry.expires_at)

    def clear(self) -> None:
        """Remove all windows and reset the eviction counter."""

        with self._lock:
            self._entries.clear()
            self._evictions = 0

    def stats(self) -> dict[str, int | None]:
        """Return lightweight store metrics without exposing identities."""

        with self._lock:
            return {
                "max_entries": self._max_entries,
                "entries": len(self._entries),
                "evictions": self._evictions,
            }

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return

        while len(self._entries) > self._max_entries:
            # popitem(last=False) removes the least recently written record
            self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(
                "window.evicted",
                extra={"reason": "capacity", "max_entries": self._max_entries},
            )
