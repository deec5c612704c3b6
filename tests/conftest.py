"""
Pytest fixtures for the GL engine test suite.

Provides:
- Structured log capture
- An in-memory LedgerStore (default for engine tests)
- A SQLite-backed SqlLedgerStore for integration tests
- Deterministic clock, tenant contexts and account/period helpers

Environment Variables:
- GL_TEST_DATABASE_URL: run the ``sql_store`` fixture against this URL
  (e.g. a PostgreSQL test database) instead of a temporary SQLite file.
"""

import json
import logging
import os
from datetime import datetime, timezone
from io import StringIO
from uuid import uuid4

import pytest

from gl_config.schema import LedgerSettings
from gl_kernel.db.engine import create_tables, drop_tables, get_session_factory, init_engine_from_url, reset_engine
from gl_kernel.domain.clock import FixedClock
from gl_kernel.domain.dtos import TenantContext
from gl_kernel.logging_config import LogContext, StructuredFormatter, configure_logging, reset_logging
from gl_kernel.models.account import AccountType
from gl_kernel.repositories.memory import InMemoryLedgerStore
from gl_kernel.repositories.sql import SqlLedgerStore
from gl_services.ledger import GeneralLedger
from tests.helpers import seed_account

TEST_USER_ID = "user-test-0001"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture gl_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.journals.create_journal(...)
            logs = captured_logs()
            assert any(r["message"] == "journal_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("gl_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "sql: test runs against the SQLAlchemy store")
    config.addinivalue_line("markers", "concurrency: test starts multiple threads")


# =============================================================================
# Time, tenants, settings
# =============================================================================


@pytest.fixture
def deterministic_clock() -> FixedClock:
    return FixedClock(datetime(2024, 6, 15, 9, 30, 0, tzinfo=timezone.utc))


@pytest.fixture
def tenant_id() -> str:
    return f"org_{uuid4().hex[:12]}"


@pytest.fixture
def tenant(tenant_id) -> TenantContext:
    return TenantContext(user_id=TEST_USER_ID, active_tenant_id=tenant_id)


@pytest.fixture
def other_tenant() -> TenantContext:
    return TenantContext(user_id="user-test-0002", active_tenant_id=f"org_{uuid4().hex[:12]}")


@pytest.fixture
def settings() -> LedgerSettings:
    return LedgerSettings(recalc_max_workers=4)


# =============================================================================
# Stores
# =============================================================================


@pytest.fixture
def memory_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def sql_store(tmp_path):
    """SqlLedgerStore on a fresh schema; SQLite file unless GL_TEST_DATABASE_URL is set."""
    url = os.environ.get("GL_TEST_DATABASE_URL") or f"sqlite:///{tmp_path / 'gl_test.db'}"
    init_engine_from_url(url)
    drop_tables()
    create_tables()
    yield SqlLedgerStore(get_session_factory())
    drop_tables()
    reset_engine()


@pytest.fixture
def store(memory_store):
    """The store engine tests run against."""
    return memory_store


@pytest.fixture
def ledger(store, settings, deterministic_clock) -> GeneralLedger:
    return GeneralLedger(store, settings=settings, clock=deterministic_clock)


@pytest.fixture
def sql_ledger(sql_store, settings, deterministic_clock) -> GeneralLedger:
    return GeneralLedger(sql_store, settings=settings, clock=deterministic_clock)


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def accounts(store, tenant_id):
    """Cash (asset), Revenue (revenue) and Expense (expense) for the test tenant."""
    return {
        "cash": seed_account(store, tenant_id, "1000", AccountType.ASSET, "Cash/Bank"),
        "revenue": seed_account(store, tenant_id, "4000", AccountType.REVENUE, "Sales Revenue"),
        "expense": seed_account(store, tenant_id, "6000", AccountType.EXPENSE, "Expenses"),
    }
