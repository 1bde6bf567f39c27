"""Rate limiting dependencies for FastAPI routes.

This module wires the admission gate into the HTTP layer.

Design goals:
- Explicit association: a route opts in with
  ``Depends(rate_limit(policy))``; nothing is discovered by reflection.
- Injected state: the gate and reporter are built once by the app factory
  and read from ``request.app.state``.
- Safe identity: clients are keyed by the transport peer address only,
  never by a header the client controls.
"""

from __future__ import annotations

import logging
import math
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, status

from quota_gate.core.config import settings
from quota_gate.core.logging import hash_identity
from quota_gate.services.admission import AdmissionGate
from quota_gate.services.registry import Policy
from quota_gate.services.status import StatusReporter

logger = logging.getLogger(__name__)

IdentityExtractor = Callable[[Request], str]


def client_host(request: Request) -> str:
    """Return the peer address of the connection as the client identity."""

    return request.client.host if request.client else "unknown"


def get_admission_gate(request: Request) -> AdmissionGate:
    """FastAPI dependency returning the app-wide admission gate."""

    return request.app.state.admission_gate


def get_status_reporter(request: Request) -> StatusReporter:
    """FastAPI dependency returning the app-wide status reporter."""

    return request.app.state.status_reporter


def _build_throttle_headers(
    gate: AdmissionGate, identity: str, policy: Policy, now: float
) -> dict[str, str]:
    """Build Retry-After and X-RateLimit-* headers for a denied request."""

    snapshot = None
    if gate.store is not None:
        snapshot = gate.store.peek(identity, policy.limit, policy.window_seconds)

    retry_after = 0
    if snapshot is not None:
        retry_after = max(0, int(math.ceil(snapshot.expires_at - now)))

    return {
        "Retry-After": str(retry_after),
        "X-RateLimit-Limit": str(policy.limit),
        "X-RateLimit-Remaining": "0",
    }


def rate_limit(
    policy: Policy,
    identity_extractor: IdentityExtractor = client_host,
) -> Callable[[Request], Awaitable[None]]:
    """Build a FastAPI dependency enforcing ``policy`` on a route.

    The request path is used as the policy key, so the status report lists
    one entry per guarded path.

    Usage:
        @router.get("/limited", dependencies=[Depends(rate_limit(Policy(5, 30)))])
        async def limited():
            ...

    Args:
        policy: Quota to enforce.
        identity_extractor: Maps the request to a client identity.

    Returns:
        Async dependency raising HTTP 429 when the quota is exhausted.
    """

    async def enforce_rate_limit(request: Request) -> None:
        if not settings.app.rate_limit_enabled:
            return

        gate = get_admission_gate(request)
        identity = identity_extractor(request)
        policy_key = request.url.path

        allowed = gate.check_and_record(identity, policy_key, policy)
        log_extra = {
            "policy_key": policy_key,
            "identity_hash": hash_identity(identity),
            "limit": policy.limit,
            "window_s": policy.window_seconds,
        }
        if allowed:
            logger.info("rate_limit.allowed", extra=log_extra)
            return

        logger.warning("rate_limit.exceeded", extra=log_extra)

        headers: dict[str, str] | None = None
        if settings.app.rate_limit_include_headers:
            headers = _build_throttle_headers(gate, identity, policy, request.app.state.clock())

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Try again later.",
            headers=headers,
        )

    return enforce_rate_limit
