from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring systems. Not rate limited, so it
    keeps answering while clients are being throttled.

    Returns:
        dict: "status" plus the number of registered policies and live windows.
    """

    gate = request.app.state.admission_gate
    store = gate.store
    return {
        "status": "ok",
        "registered_policies": len(gate.registry),
        "tracked_windows": len(store) if store is not None else 0,
    }
