"""Window store interfaces.

Services depend on this abstraction (not the concrete implementation) so the
counter storage can be swapped without changing the admission gate or the
status reporter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class WindowSnapshot:
    """Read-only copy of a counter and the end of its window.

    Attributes:
        count: Requests counted in the window, including denied ones.
        expires_at: UNIX epoch seconds after which the window is over.
    """

    count: int
    expires_at: float


def build_window_key(identity: str, limit: int, window_seconds: int) -> str:
    """Build the storage key for an identity and a quota shape.

    Numerals come first because they never contain the separator, which keeps
    the key unambiguous for identities such as IPv6 addresses.
    """

    return f"{limit}:{window_seconds}:{identity}"


class AbstractWindowStore(ABC):
    """Interface for fixed-window counter stores."""

    @abstractmethod
    def check_and_increment(self, identity: str, limit: int, window_seconds: int) -> bool:
        """Count one request and report whether it fits in the quota.

        Args:
            identity: Opaque client identity (e.g., peer address).
            limit: Max requests per window.
            window_seconds: Window size in seconds.

        Returns:
            True while the window's count is still within ``limit``.
        """
        raise NotImplementedError

    @abstractmethod
    def peek(self, identity: str, limit: int, window_seconds: int) -> WindowSnapshot | None:
        """Return a copy of the stored window without changing it."""
        raise NotImplementedError

    def current_count(self, identity: str, limit: int, window_seconds: int) -> int:
        """Return the stored count, or 0 when nothing is stored.

        Expired windows are not evicted here, so a stale count can be
        returned until the next write to the same key.
        """
        snapshot = self.peek(identity, limit, window_seconds)
        return snapshot.count if snapshot is not None else 0

    @abstractmethod
    def clear(self) -> None:
        """Drop every stored window."""
        raise NotImplementedError
