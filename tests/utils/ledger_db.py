"""PostgreSQL helpers for ledger integration tests."""

from __future__ import annotations

import importlib.util
import os
from pathlib import Path
import sys
import types
from typing import Any, Optional

import pytest
from sqlalchemy import URL, Engine, create_engine


MIGRATION_PATH = (
    Path(__file__).resolve().parents[2] / "backend" / "db" / "migrations" / "versions" / "0001_initial_schema.py"
)


def pg_settings() -> Optional[dict[str, str]]:
    """Read LEDGER_TEST_DB_* connection settings, or None when any is unset."""
    settings = {
        "host": os.getenv("LEDGER_TEST_DB_HOST", ""),
        "port": os.getenv("LEDGER_TEST_DB_PORT", ""),
        "dbname": os.getenv("LEDGER_TEST_DB_NAME", ""),
        "user": os.getenv("LEDGER_TEST_DB_USER", ""),
        "password": os.getenv("LEDGER_TEST_DB_PASSWORD", ""),
    }
    if not all(settings.values()):
        return None
    return settings


class _PsycopgOp:
    """Stand-in for `alembic.op` that runs DDL on a psycopg connection."""

    def __init__(self, conn: Any) -> None:
        self.conn = conn

    def execute(self, statement: str) -> None:
        with self.conn.cursor() as cur:
            cur.execute(statement)


def apply_initial_migration(conn: Any, schema: str, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run the 0001 migration's upgrade into `schema`."""
    fake_alembic = types.ModuleType("alembic")
    fake_alembic.op = _PsycopgOp(conn)
    monkeypatch.setitem(sys.modules, "alembic", fake_alembic)

    spec = importlib.util.spec_from_file_location("migration_0001_integration", MIGRATION_PATH)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    with conn.cursor() as cur:
        cur.execute(f"SET search_path TO {schema}")
    module.upgrade()
    conn.commit()


def build_pg_engine(settings: dict[str, str], schema: str) -> Engine:
    url = URL.create(
        "postgresql+psycopg",
        username=settings["user"],
        password=settings["password"],
        host=settings["host"],
        port=int(settings["port"]),
        database=settings["dbname"],
    )
    return create_engine(url, connect_args={"options": f"-csearch_path={schema}"})
