"""Window store adapters.

The engine talks to counter storage through ``AbstractWindowStore`` so the
in-memory store can later be replaced by another backend without touching
the admission or status services.
"""

from quota_gate.adapters.rate_limit.base import AbstractWindowStore, WindowSnapshot, build_window_key
from quota_gate.adapters.rate_limit.in_memory import InMemoryWindowStore

__all__ = ["AbstractWindowStore", "InMemoryWindowStore", "WindowSnapshot", "build_window_key"]
