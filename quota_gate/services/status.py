"""Per-identity status of every registered policy."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable

from quota_gate.adapters.rate_limit.base import AbstractWindowStore
from quota_gate.services.registry import PolicyRegistry


@dataclass(frozen=True)
class EndpointStatus:
    """State of one policy for one identity.

    Attributes:
        policy_key: Identifier the policy is registered under.
        description: Human-readable policy label.
        limit: Max requests per window.
        window_seconds: Window size in seconds.
        current_count: Requests counted in the current window.
        remaining: Requests left before denial (never negative).
        seconds_remaining: Whole seconds until the window ends (0 if none).
    """

    policy_key: str
    description: str
    limit: int
    window_seconds: int
    current_count: int
    remaining: int
    seconds_remaining: int

    def __str__(self) -> str:
        return (
            f"{self.policy_key} ({self.description}): "
            f"{self.current_count}/{self.limit} requests, "
            f"{self.seconds_remaining} seconds remaining"
        )


class StatusReporter:
    """Read-only view over the registry and the counter store."""

    def __init__(
        self,
        registry: PolicyRegistry,
        store: AbstractWindowStore | None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._registry = registry
        self._store = store
        self._clock = clock

    def report(self, identity: str) -> list[EndpointStatus]:
        """Compute the status of every registered policy for ``identity``.

        Policies the identity never hit are reported with a zero count and a
        full quota. Nothing in the store is modified.

        Args:
            identity: Opaque client identity.

        Returns:
            One EndpointStatus per registered policy, in no particular order.
        """
        now = self._clock()
        statuses: list[EndpointStatus] = []

        for policy_key, policy in self._registry.list_all():
            snapshot = None
            if self._store is not None:
                snapshot = self._store.peek(identity, policy.limit, policy.window_seconds)

            count = snapshot.count if snapshot is not None else 0
            seconds_remaining = 0
            if snapshot is not None:
                seconds_remaining = max(0, math.floor(snapshot.expires_at - now))

            statuses.append(
                EndpointStatus(
                    policy_key=policy_key,
                    description=policy.description,
                    limit=policy.limit,
                    window_seconds=policy.window_seconds,
                    current_count=count,
                    remaining=max(0, policy.limit - count),
                    seconds_remaining=seconds_remaining,
                )
            )

        return statuses
