"""Shared pytest fixtures for sitestay tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

from helpers import InMemorySiteStore  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_correlation_id():
    """Clear any correlation ID leaked by a previous test.

    The correlation ID lives in a ContextVar that pytest's main thread
    keeps between tests.
    """
    from sitestay.observability.correlation import correlation_id_var

    token = correlation_id_var.set("")
    yield
    correlation_id_var.reset(token)


@pytest.fixture
def store():
    """Empty in-memory SiteStore; tests add sites/bookings/blocks."""
    return InMemorySiteStore()
