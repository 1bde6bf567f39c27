"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import that might build settings.
"""

import os
from unittest.mock import Mock

import pytest

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("APP_RATE_LIMIT_INCLUDE_HEADERS", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from quota_gate.adapters.rate_limit import InMemoryWindowStore  # noqa: E402
from quota_gate.services.admission import AdmissionGate  # noqa: E402
from quota_gate.services.registry import PolicyRegistry  # noqa: E402
from quota_gate.services.status import StatusReporter  # noqa: E402


@pytest.fixture
def clock() -> Mock:
    """Deterministic clock; tests move time by setting ``return_value``."""
    return Mock(return_value=1000.0)


@pytest.fixture
def store(clock: Mock) -> InMemoryWindowStore:
    return InMemoryWindowStore(clock=clock)


@pytest.fixture
def registry() -> PolicyRegistry:
    return PolicyRegistry()


@pytest.fixture
def gate(registry: PolicyRegistry, store: InMemoryWindowStore) -> AdmissionGate:
    return AdmissionGate(registry, store)


@pytest.fixture
def reporter(registry: PolicyRegistry, store: InMemoryWindowStore, clock: Mock) -> StatusReporter:
    return StatusReporter(registry, store, clock=clock)
