"""Unit tests for snapshot lifetime and rollover."""

from __future__ import annotations

from dataclasses import replace

import pytest

from ledger.accumulator import apply_delta, open_account
from ledger.entities import AccountBalance, BalanceSnapshot, snapshot_id
from ledger.errors import SnapshotSelectionError
from ledger.snapshots import SNAPSHOT_LIFETIME_SECONDS, load_open_snapshot, roll_snapshot, touch_snapshot
from ledger.store import InMemoryEntityStore


def test_lifetime_is_one_day() -> None:
    assert SNAPSHOT_LIFETIME_SECONDS == 86_400


def test_event_exactly_at_lifetime_refreshes_open_snapshot(memory_store: InMemoryEntityStore) -> None:
    apply_delta(memory_store, "acct", 1000, 5)
    account = apply_delta(memory_store, "acct", 1000 + SNAPSHOT_LIFETIME_SECONDS, 5)

    assert account.snapshot_count == 1
    snapshot = memory_store.get(BalanceSnapshot, "acct-1")
    assert snapshot is not None
    assert snapshot.filled_at == 1000
    assert snapshot.last_update_time == 1000 + SNAPSHOT_LIFETIME_SECONDS


def test_event_past_lifetime_opens_next_snapshot(memory_store: InMemoryEntityStore) -> None:
    apply_delta(memory_store, "acct", 1000, 5)
    account = apply_delta(memory_store, "acct", 1000 + SNAPSHOT_LIFETIME_SECONDS + 1, 5)

    assert account.snapshot_count == 2
    closed = memory_store.get(BalanceSnapshot, "acct-1")
    opened = memory_store.get(BalanceSnapshot, "acct-2")
    assert closed is not None and opened is not None
    assert closed.last_update_time == 1000
    assert opened.filled_at == 1000 + SNAPSHOT_LIFETIME_SECONDS + 1
    assert opened.balance == 10
    assert opened.cumulative_balance_seconds == 5 * (SNAPSHOT_LIFETIME_SECONDS + 1)


def test_closed_snapshots_never_change(memory_store: InMemoryEntityStore) -> None:
    filled = [sequence * (SNAPSHOT_LIFETIME_SECONDS + 1) for sequence in range(3)]
    for timestamp in filled:
        apply_delta(memory_store, "acct", timestamp, 1)
    closed = [memory_store.get(BalanceSnapshot, snapshot_id("acct", sequence)) for sequence in (1, 2)]

    for step in range(1, 11):
        apply_delta(memory_store, "acct", filled[2] + step * 60, 1)

    assert [memory_store.get(BalanceSnapshot, snapshot_id("acct", sequence)) for sequence in (1, 2)] == closed
    account = memory_store.get(AccountBalance, "acct")
    assert account is not None
    assert account.snapshot_count == 3
    assert memory_store.count(BalanceSnapshot) == 3
    third = memory_store.get(BalanceSnapshot, "acct-3")
    assert third is not None
    assert (third.filled_at, third.last_update_time) == (filled[2], filled[2] + 600)

    apply_delta(memory_store, "acct", filled[2] + SNAPSHOT_LIFETIME_SECONDS + 1, 1)

    assert memory_store.get(BalanceSnapshot, "acct-3") == third
    assert memory_store.count(BalanceSnapshot) == 4


def test_roll_snapshot_opens_first_snapshot_at_sequence_one() -> None:
    account = replace(open_account("acct", 50), balance=9)

    updated, snapshot = roll_snapshot(account, None, 50)

    assert updated.snapshot_count == 1
    assert snapshot.sequence == 1
    assert snapshot.filled_at == snapshot.last_update_time == 50
    assert snapshot.balance == 9


def test_load_open_snapshot_before_first_event(memory_store: InMemoryEntityStore) -> None:
    assert load_open_snapshot(memory_store, open_account("acct", 0)) is None


def test_missing_open_snapshot_is_an_error(memory_store: InMemoryEntityStore) -> None:
    account = replace(open_account("acct", 0), snapshot_count=3)

    with pytest.raises(SnapshotSelectionError, match="acct-3"):
        touch_snapshot(memory_store, account)
