"""Pytest fixtures shared across unit and integration tests."""

from __future__ import annotations

from typing import Any, Iterator
from uuid import uuid4

import psycopg
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from backend.db.session import build_session_factory, create_schema
from backend.db.store import SqlAlchemyEntityStore
from ledger.store import InMemoryEntityStore
from tests.utils.ledger_db import apply_initial_migration, build_pg_engine, pg_settings


@pytest.fixture
def memory_store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def sqlite_store() -> Iterator[SqlAlchemyEntityStore]:
    """SQL store on a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    try:
        yield SqlAlchemyEntityStore(build_session_factory(engine))
    finally:
        engine.dispose()


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request: pytest.FixtureRequest) -> Any:
    """Run a test against both store implementations."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture(scope="session")
def pg_conn() -> Any:
    """Session-scoped psycopg connection for integration tests."""
    settings = pg_settings()
    if settings is None:
        pytest.skip("Integration DB env vars are missing; set LEDGER_TEST_DB_* to run")

    conn = psycopg.connect(**settings, autocommit=False)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def pg_schema(pg_conn: Any) -> Iterator[str]:
    """Fresh PostgreSQL schema, dropped after the test."""
    schema = f"ledger_test_{uuid4().hex[:12]}"
    with pg_conn.cursor() as cur:
        cur.execute(f"CREATE SCHEMA {schema}")
    pg_conn.commit()
    try:
        yield schema
    finally:
        pg_conn.rollback()
        with pg_conn.cursor() as cur:
            cur.execute(f"DROP SCHEMA {schema} CASCADE")
        pg_conn.commit()


@pytest.fixture
def pg_store(pg_conn: Any, pg_schema: str, monkeypatch: pytest.MonkeyPatch) -> Iterator[SqlAlchemyEntityStore]:
    """SQL store on a migrated PostgreSQL schema."""
    apply_initial_migration(pg_conn, pg_schema, monkeypatch)
    settings = pg_settings()
    assert settings is not None
    engine = build_pg_engine(settings, pg_schema)
    try:
        yield SqlAlchemyEntityStore(build_session_factory(engine))
    finally:
        engine.dispose()
