"""Registry of rate-limited endpoints and their quotas.

Entries are upserted on every admission check and never removed, so the
registry holds every policy seen since process start.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from quota_gate.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 60
DEFAULT_WINDOW_SECONDS = 60


@dataclass(frozen=True)
class Policy:
    """Quota applied to a guarded operation.

    Attributes:
        limit: Max requests per window.
        window_seconds: Window size in seconds.
        description: Human-readable label shown by the status report.
    """

    limit: int = DEFAULT_LIMIT
    window_seconds: int = DEFAULT_WINDOW_SECONDS
    description: str = ""


def describe_policy(name: str, limit: int, window_seconds: int) -> str:
    """Build the default description for a policy.

    Examples:
        >>> describe_policy("hello", 60, 60)
        'hello (limit: 60 requests per minute)'
        >>> describe_policy("limited", 5, 30)
        'limited (limit: 5 requests per 30 seconds)'
    """
    period = "minute" if window_seconds == 60 else f"{window_seconds} seconds"
    return f"{name} (limit: {limit} requests per {period})"


class PolicyRegistry:
    """Thread-safe mapping of policy key to ``Policy``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._policies: dict[str, Policy] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._policies)

    def register(self, policy_key: str, limit: int, window_seconds: int, description: str) -> Policy:
        """Insert or overwrite the policy stored under ``policy_key``.

        Args:
            policy_key: Identifier the quota is scoped to (e.g., request path).
            limit: Max requests per window.
            window_seconds: Window size in seconds.
            description: Human-readable label.

        Returns:
            The stored policy.

        Raises:
            ConfigurationAppError: If limit or window_seconds is not positive.
        """
        if limit <= 0 or window_seconds <= 0:
            logger.error(
                "policy.invalid",
                extra={
                    "policy_key": policy_key,
                    "limit": limit,
                    "window_s": window_seconds,
                },
            )
            raise ConfigurationAppError(
                code="invalid_rate_limit_policy",
                message="Rate limit policy requires a positive limit and window",
                details={
                    "policy_key": policy_key,
                    "limit": limit,
                    "window_seconds": window_seconds,
                },
            )

        policy = Policy(limit=limit, window_seconds=window_seconds, description=description)
        with self._lock:
            previous = self._policies.get(policy_key)
            self._policies[policy_key] = policy

        if previous != policy:
            logger.info(
                "policy.registered",
                extra={
                    "policy_key": policy_key,
                    "limit": limit,
                    "window_s": window_seconds,
                    "replaced": previous is not None,
                },
            )
        return policy

    def get(self, policy_key: str) -> Policy | None:
        with self._lock:
            return self._policies.get(policy_key)

    def list_all(self) -> list[tuple[str, Policy]]:
        """Return a snapshot of ``(policy_key, Policy)`` pairs.

        Callers must not rely on the order of the returned list.
        """
        with self._lock:
            return list(self._policies.items())
