from __future__ import annotations

"""Functional test bootstrap for the assessment engine.

Points the service at a file-backed SQLite database under tmp/ before any
application import, applies the migrations once per session and exposes
store fixtures for both adapters. Engine-level tests take the parametrised
`store` fixture so every scenario runs against the in-memory and the SQL
adapter alike.
"""

import os
import pathlib

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

# Use a file-backed SQLite DB so threads see each other's writes
os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
os.environ["AUTO_APPLY_MIGRATIONS"] = "1"
os.environ["ENABLE_TEST_SUPPORT"] = "1"
os.environ.setdefault("ASSESSMENT_STORE_BACKEND", "sql")


@pytest.fixture(scope="session")
def sql_engine():
    """Session-level bootstrap: apply migrations once for the shared DB."""
    from assessment_service.db.base import dispose_engine, get_engine
    from assessment_service.db.migrations_runner import apply_migrations

    engine = get_engine(os.environ["TEST_DATABASE_URL"])
    apply_migrations(engine, use_journal=False)
    yield engine
    dispose_engine()


@pytest.fixture
def memory_store():
    from assessment_service.logic.kv_store import InMemoryKeyValueStore

    return InMemoryKeyValueStore()


@pytest.fixture
def sql_store(sql_engine):
    from assessment_service.logic.kv_store import SqlKeyValueStore

    store = SqlKeyValueStore(sql_engine)
    store.clear()
    yield store
    store.clear()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def bank(store):
    from assessment_service.logic.question_bank import QuestionBank

    return QuestionBank(store)


@pytest.fixture
def registry(store, bank):
    from assessment_service.logic.version_registry import VersionRegistry

    return VersionRegistry(store, bank)


@pytest.fixture(autouse=True)
def _drain_events():
    from assessment_service.logic import events

    events.get_buffered_events(clear=True)
    yield
    events.get_buffered_events(clear=True)


@pytest.fixture
def client(memory_store):
    """In-process API client over a fresh in-memory store."""
    from fastapi.testclient import TestClient

    from assessment_service.main import create_app

    return TestClient(create_app(store=memory_store))
