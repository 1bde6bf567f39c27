from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from quota_gate.core.config import settings
from quota_gate.core.rate_limit import client_host, get_status_reporter, rate_limit
from quota_gate.schemas.rate_info import PolicyStatus, RateInfoResponse
from quota_gate.services.registry import Policy, describe_policy
from quota_gate.services.status import StatusReporter

router = APIRouter(prefix="/api", tags=["Rate Limits"])

_default_limit = settings.app.rate_limit_default_limit
_default_window = settings.app.rate_limit_default_window_seconds

# Guarded operation -> quota. Routes below reference these entries explicitly.
ROUTE_POLICIES: dict[str, Policy] = {
    "hello": Policy(
        limit=_default_limit,
        window_seconds=_default_window,
        description=describe_policy("hello", _default_limit, _default_window),
    ),
    "limited": Policy(
        limit=5,
        window_seconds=30,
        description=describe_policy("limited", 5, 30),
    ),
}


@router.get("/hello", dependencies=[Depends(rate_limit(ROUTE_POLICIES["hello"]))])
async def hello() -> dict:
    """Endpoint guarded by the default quota."""

    policy = ROUTE_POLICIES["hello"]
    return {
        "message": f"Hello! This endpoint is rate limited to {policy.limit} requests "
        f"per {policy.window_seconds} seconds."
    }


@router.get("/limited", dependencies=[Depends(rate_limit(ROUTE_POLICIES["limited"]))])
async def limited() -> dict:
    """Endpoint guarded by a tight custom quota."""

    return {"message": "Hello! This endpoint is rate limited to 5 requests per 30 seconds."}


@router.get("/unlimited")
async def unlimited() -> dict:
    return {"message": "Hello! This endpoint is not rate limited."}


@router.get("/rate-info", response_model=RateInfoResponse, response_model_exclude_none=True)
async def rate_info(
    request: Request,
    reporter: StatusReporter = Depends(get_status_reporter),
) -> RateInfoResponse:
    """Report the calling client's usage of every rate limited endpoint.

    The client is identified the same way guarded routes identify it, by the
    peer address of the connection.

    Returns:
        RateInfoResponse: Per-endpoint limit, usage and reset time.
    """

    identity = client_host(request)
    statuses = reporter.report(identity)

    if not statuses:
        return RateInfoResponse(
            ip=identity,
            message="No rate limits are currently active for this IP address",
        )

    return RateInfoResponse(
        ip=identity,
        limits={
            status.policy_key: PolicyStatus(
                description=status.description,
                limit=status.limit,
                time_window_seconds=status.window_seconds,
                current=status.current_count,
                remaining=status.remaining,
                resets_in_seconds=status.seconds_remaining,
            )
            for status in statuses
        },
    )
