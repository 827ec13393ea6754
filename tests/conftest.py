"""
Pytest fixtures for the mass action scheduler test suite.

Provides:
- Structured logging configuration and capture
- In-memory SQLite engine shared by every session and thread
- Deterministic clock and a test actor
- Factories for configuration rows and a sample ``contacts`` table

No PostgreSQL is required: SQLite with a StaticPool keeps one in-memory
database alive for the whole test, which the runner's worker thread and
the recorder hooks reach through their own sessions.
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from uuid import uuid4

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import massaction_batch.models  # noqa: F401  registers tables on Base.metadata
from massaction_batch.models.mass_action import MassActionConfigModel
from massaction_kernel.db.base import Base
from massaction_kernel.domain.clock import DeterministicClock
from massaction_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()


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
    Capture massaction logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, dispatcher):
            dispatcher.enqueue(config_id)
            logs = captured_logs()
            assert any(r["message"] == "job_enqueued" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("massaction")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return DeterministicClock(
        fixed_time=datetime(2026, 2, 1, 12, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def actor_id():
    return TEST_ACTOR_ID


# =============================================================================
# Data fixtures
# =============================================================================


@pytest.fixture
def make_config(db_session):
    """
    Insert and commit a configuration row; returns the model.

    Usage::

        config = make_config(source_type="SOQL", source_soql_query="SELECT 1 AS x")
    """
    counter = {"n": 0}

    def _make(**overrides) -> MassActionConfigModel:
        counter["n"] += 1
        values = {
            "name": f"config-{counter['n']}",
            "source_type": "SOQL",
            "batch_size": 2,
            "active": True,
            "created_by_id": TEST_ACTOR_ID,
        }
        values.update(overrides)
        model = MassActionConfigModel(**values)
        db_session.add(model)
        db_session.commit()
        return model

    return _make


@pytest.fixture
def contacts_table(engine):
    """Create a ``contacts`` table with five rows; returns the row dicts."""
    rows = [
        {"id": 1, "name": "Ada", "email": "ada@example.com", "region": "EU"},
        {"id": 2, "name": "Grace", "email": "grace@example.com", "region": "US"},
        {"id": 3, "name": "Linus", "email": "linus@example.com", "region": "EU"},
        {"id": 4, "name": "Barbara", "email": "barbara@example.com", "region": "US"},
        {"id": 5, "name": "Ken", "email": "ken@example.com", "region": "US"},
    ]
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE contacts ("
            "id INTEGER PRIMARY KEY, name TEXT, email TEXT, region TEXT)"
        ))
        conn.execute(
            text("INSERT INTO contacts (id, name, email, region) "
                 "VALUES (:id, :name, :email, :region)"),
            rows,
        )
    return rows
