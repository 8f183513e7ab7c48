"""Lazily created, bounded-lifetime snapshot log of account state."""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Optional

from ledger.entities import AccountBalance, BalanceSnapshot, snapshot_id
from ledger.errors import SnapshotSelectionError
from ledger.store import EntityStore

logger = logging.getLogger(__name__)

SNAPSHOT_LIFETIME_SECONDS = 24 * 60 * 60


def load_open_snapshot(store: EntityStore, account: AccountBalance) -> Optional[BalanceSnapshot]:
    """Return the account's highest-sequence snapshot, or None before the first one."""
    if account.snapshot_count == 0:
        return None
    snapshot = store.get(BalanceSnapshot, snapshot_id(account.id, account.snapshot_count))
    if snapshot is None:
        raise SnapshotSelectionError(
            f"Open snapshot {snapshot_id(account.id, account.snapshot_count)} is missing "
            f"for account={account.id} with snapshot_count={account.snapshot_count}."
        )
    return snapshot


def _open_new(account: AccountBalance, timestamp: int) -> tuple[AccountBalance, BalanceSnapshot]:
    sequence = account.snapshot_count + 1
    snapshot = BalanceSnapshot(
        account_id=account.id,
        sequence=sequence,
        filled_at=timestamp,
        balance=account.balance,
        cumulative_balance_seconds=account.cumulative_balance_seconds,
        last_update_time=timestamp,
    )
    return replace(account, snapshot_count=sequence), snapshot


def roll_snapshot(
    account: AccountBalance,
    open_snapshot: Optional[BalanceSnapshot],
    timestamp: int,
) -> tuple[AccountBalance, BalanceSnapshot]:
    """Record the account's post-update state into its snapshot log.

    The open snapshot is refreshed in place while `timestamp - filled_at` stays
    within the lifetime; past it a new snapshot with the next sequence is opened
    and the old one becomes immutable history.
    """
    if open_snapshot is None:
        return _open_new(account, timestamp)

    if timestamp - open_snapshot.filled_at > SNAPSHOT_LIFETIME_SECONDS:
        logger.debug(
            "Rolling over snapshot %s at timestamp=%s (filled_at=%s).",
            open_snapshot.id,
            timestamp,
            open_snapshot.filled_at,
        )
        return _open_new(account, timestamp)

    refreshed = replace(
        open_snapshot,
        balance=account.balance,
        cumulative_balance_seconds=account.cumulative_balance_seconds,
        last_update_time=timestamp,
    )
    return account, refreshed


def touch_snapshot(store: EntityStore, account: AccountBalance) -> tuple[AccountBalance, BalanceSnapshot]:
    """Load the open snapshot and roll it forward to the account's observation time."""
    return roll_snapshot(account, load_open_snapshot(store, account), account.last_observation_time)
