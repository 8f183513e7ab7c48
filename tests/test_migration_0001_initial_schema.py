"""Tests for the ledger's initial schema migration."""

from __future__ import annotations

import importlib.util
import re
import sys
import types
from typing import Any

import pytest

from tests.utils.ledger_db import MIGRATION_PATH


class _RecordingOp:
    """Records DDL handed to `alembic.op.execute`, optionally failing on a fragment."""

    def __init__(self, *, fail_on: str | None = None) -> None:
        self.statements: list[str] = []
        self.fail_on = fail_on

    def execute(self, statement: str) -> None:
        self.statements.append(statement)
        if self.fail_on and self.fail_on in statement:
            raise RuntimeError(f"cannot run: {self.fail_on}")


@pytest.fixture
def recording_op() -> _RecordingOp:
    return _RecordingOp()


def _migration(op: _RecordingOp, monkeypatch: pytest.MonkeyPatch) -> Any:
    fake_alembic = types.ModuleType("alembic")
    fake_alembic.op = op
    monkeypatch.setitem(sys.modules, "alembic", fake_alembic)
    spec = importlib.util.spec_from_file_location("ledger_migration_0001", MIGRATION_PATH)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _normalized(statement: str) -> str:
    return " ".join(statement.split())


def _created_tables(statements: list[str]) -> list[str]:
    return [match.group(1) for match in (re.search(r"CREATE TABLE (\w+)", s) for s in statements) if match]


def test_is_the_root_revision(recording_op: _RecordingOp, monkeypatch: pytest.MonkeyPatch) -> None:
    module = _migration(recording_op, monkeypatch)

    assert (module.revision, module.down_revision) == ("0001_initial_schema", None)


def test_upgrade_creates_every_ledger_table_in_dependency_order(
    recording_op: _RecordingOp, monkeypatch: pytest.MonkeyPatch
) -> None:
    _migration(recording_op, monkeypatch).upgrade()

    tables = _created_tables(recording_op.statements)
    assert sorted(tables) == [
        "account_balance",
        "balance_snapshot",
        "balance_transaction",
        "fungible_asset_stats",
        "ledger_user",
        "staking_stats",
        "store_metadata_cache",
        "vault",
        "vault_stats",
    ]
    assert tables.index("vault") < tables.index("store_metadata_cache") < tables.index("account_balance")
    assert tables.index("account_balance") < tables.index("balance_snapshot")
    first_table = next(i for i, s in enumerate(recording_op.statements) if "CREATE TABLE" in s)
    assert all("CREATE TYPE" in s for s in recording_op.statements[:first_table])


def test_snapshot_table_is_keyed_and_indexed_for_bracketing_lookups(
    recording_op: _RecordingOp, monkeypatch: pytest.MonkeyPatch
) -> None:
    _migration(recording_op, monkeypatch).upgrade()
    ddl = [_normalized(s) for s in recording_op.statements]

    snapshot_table = next(s for s in ddl if s.startswith("CREATE TABLE balance_snapshot"))
    assert "PRIMARY KEY (account_id, sequence)" in snapshot_table
    assert "CHECK (filled_at <= last_update_time)" in snapshot_table
    assert "cumulative_balance_seconds NUMERIC(78,0) NOT NULL" in snapshot_table
    assert (
        "CREATE INDEX idx_balance_snapshot_account_filled_at_desc ON balance_snapshot (account_id, filled_at DESC);"
        in ddl
    )


def test_history_tables_are_protected_by_triggers(
    recording_op: _RecordingOp, monkeypatch: pytest.MonkeyPatch
) -> None:
    _migration(recording_op, monkeypatch).upgrade()
    ddl = [_normalized(s) for s in recording_op.statements]

    assert any(
        "BEFORE UPDATE OR DELETE ON balance_transaction" in s and "fn_enforce_append_only()" in s for s in ddl
    )
    assert any("BEFORE DELETE ON balance_snapshot" in s and "fn_balance_snapshot_no_delete()" in s for s in ddl)
    assert not any("UPDATE" in s and "ON balance_snapshot" in s for s in ddl)
    assert ddl[-1].startswith("CREATE TRIGGER")


def test_failed_statement_is_logged_and_stops_the_upgrade(monkeypatch: pytest.MonkeyPatch) -> None:
    op = _RecordingOp(fail_on="CREATE TABLE account_balance")
    module = _migration(op, monkeypatch)
    logged: list[str] = []
    monkeypatch.setattr(module.logger, "exception", lambda message: logged.append(message))

    with pytest.raises(RuntimeError, match="account_balance"):
        module.upgrade()

    assert logged == ["Migration statement failed."]
    assert "balance_snapshot" not in _created_tables(op.statements)


def test_downgrade_drops_everything_upgrade_creates(
    recording_op: _RecordingOp, monkeypatch: pytest.MonkeyPatch
) -> None:
    module = _migration(recording_op, monkeypatch)
    module.upgrade()
    created_tables = set(_created_tables(recording_op.statements))
    recording_op.statements.clear()

    module.downgrade()

    drops = recording_op.statements
    dropped_tables = {m.group(1) for m in (re.match(r"DROP TABLE IF EXISTS (\w+);", s) for s in drops) if m}
    assert dropped_tables == created_tables
    assert drops.index("DROP TABLE IF EXISTS balance_snapshot;") < drops.index("DROP TABLE IF EXISTS account_balance;")
    assert drops.index("DROP TABLE IF EXISTS account_balance;") < drops.index("DROP TABLE IF EXISTS vault;")
    assert drops[0].startswith("DROP TRIGGER")
    assert drops[-2:] == ["DROP TYPE IF EXISTS transaction_type_enum;", "DROP TYPE IF EXISTS account_kind_enum;"]
