"""
Pytest configuration for SurrealDB session tests.

Unit tests run against ``MockTransport``. Tests marked ``integration`` need a
running SurrealDB server; they are deselected by default and pick up the
connection settings below from the environment.
"""

import os

import pytest

from mock_transport import MockTransport
from surreal_session.session import RPCSession

# ---------------------------------------------------------------------------
# Shared connection constants (import these in test files)
# ---------------------------------------------------------------------------
TEST_PORT = int(os.getenv("SURREALDB_PORT", "8000"))
SURREALDB_URL = os.getenv("SURREALDB_URL", f"http://localhost:{TEST_PORT}")
SURREALDB_WS_URL = os.getenv("SURREALDB_WS_URL", f"ws://localhost:{TEST_PORT}")
SURREALDB_USER = os.getenv("SURREALDB_USER", "root")
SURREALDB_PASS = os.getenv("SURREALDB_PASS", "root")
SURREALDB_NAMESPACE = os.getenv("SURREALDB_NAMESPACE", "test")
SURREALDB_DATABASE = os.getenv("SURREALDB_DATABASE", "test")


@pytest.fixture
def transport() -> MockTransport:
    """A fresh, unconnected mock transport."""
    return MockTransport()


@pytest.fixture
def session(transport: MockTransport) -> RPCSession:
    """An RPC session over the mock transport (call ``connect()`` in the test)."""
    return RPCSession(transport)
