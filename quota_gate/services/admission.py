"""Admission gate: the entry point used by request interception.

Every check re-registers the policy (an idempotent upsert) and then counts
the request against the ``(identity, limit, window_seconds)`` window.
"""

from __future__ import annotations

import logging

from quota_gate.adapters.rate_limit.base import AbstractWindowStore
from quota_gate.core.errors import StorageUnavailableAppError
from quota_gate.core.logging import hash_identity
from quota_gate.services.registry import Policy, PolicyRegistry

logger = logging.getLogger(__name__)


class AdmissionGate:
    """Decide whether a request may run under a policy.

    If no counter store is available the gate fails open: requests are
    allowed and a warning is logged.
    """

    def __init__(self, registry: PolicyRegistry, store: AbstractWindowStore | None) -> None:
        self._registry = registry
        self._store = store

    @property
    def registry(self) -> PolicyRegistry:
        return self._registry

    @property
    def store(self) -> AbstractWindowStore | None:
        return self._store

    def check_and_record(self, identity: str, policy_key: str, policy: Policy) -> bool:
        """Register ``policy`` under ``policy_key`` and count one request.

        Args:
            identity: Opaque client identity.
            policy_key: Identifier of the guarded operation.
            policy: Quota to enforce.

        Returns:
            True if the request may proceed.

        Raises:
            ConfigurationAppError: If the policy has a non-positive limit or window.
        """
        self._registry.register(policy_key, policy.limit, policy.window_seconds, policy.description)

        if self._store is None:
            self._log_fail_open(identity, policy_key, reason="store_missing")
            return True

        try:
            return self._store.check_and_increment(identity, policy.limit, policy.window_seconds)
        except StorageUnavailableAppError as exc:
            self._log_fail_open(identity, policy_key, reason=exc.code)
            return True

    def _log_fail_open(self, identity: str, policy_key: str, *, reason: str) -> None:
        logger.warning(
            "rate_limit.fail_open",
            extra={
                "reason": reason,
                "policy_key": policy_key,
                "identity_hash": hash_identity(identity),
            },
        )
