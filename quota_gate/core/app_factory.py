"""Application factory for the FastAPI app.

Builds the rate-limit components once and hands them to the HTTP layer via
``app.state``, so routes and dependencies never reach for module globals.
"""

from __future__ import annotations

import time
from typing import Callable

from fastapi import FastAPI

from quota_gate.adapters.rate_limit import AbstractWindowStore, InMemoryWindowStore
from quota_gate.api.routes import health_router, limits_router
from quota_gate.core.config import settings
from quota_gate.core.exception_handlers import setup_exception_handlers
from quota_gate.core.logging import configure_logging
from quota_gate.core.middleware import request_id_middleware
from quota_gate.services.admission import AdmissionGate
from quota_gate.services.registry import PolicyRegistry
from quota_gate.services.status import StatusReporter


def create_app(
    *,
    clock: Callable[[], float] = time.time,
    store_factory: Callable[[], AbstractWindowStore | None] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        clock: Time source shared by the store, the reporter and the
            throttling headers.
        store_factory: Returns the counter store. Defaults to an in-memory
            store sized by ``APP_RATE_LIMIT_MAX_ENTRIES``. When it returns
            None, guarded routes fail open.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    if store_factory is None:
        store: AbstractWindowStore | None = InMemoryWindowStore(
            max_entries=settings.app.rate_limit_max_entries, clock=clock
        )
    else:
        store = store_factory()

    registry = PolicyRegistry()

    app = FastAPI(
        title="Quota Gate",
        description=(
            "Fixed-window, per-client rate limiting for HTTP endpoints. "
            "Guarded routes answer 429 once a client exhausts its quota; "
            "/api/rate-info reports usage of every guarded endpoint."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.state.clock = clock
    app.state.policy_registry = registry
    app.state.admission_gate = AdmissionGate(registry, store)
    app.state.status_reporter = StatusReporter(registry, store, clock=clock)

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(limits_router)
    app.include_router(health_router)

    return app
