"""Balance-seconds accumulator folding signed deltas into account state."""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Any, Optional

from ledger.entities import AccountBalance
from ledger.errors import OutOfOrderEventError
from ledger.events import BalanceEvent
from ledger.snapshots import touch_snapshot
from ledger.store import EntityStore

logger = logging.getLogger(__name__)


def open_account(account_id: str, timestamp: int, **attrs: Any) -> AccountBalance:
    """Build the implicit zero state of an account first seen at `timestamp`."""
    return AccountBalance(
        id=account_id,
        balance=0,
        last_observation_time=timestamp,
        cumulative_balance_seconds=0,
        snapshot_count=0,
        **attrs,
    )


def accumulate(account: AccountBalance, timestamp: int, signed_delta: int) -> AccountBalance:
    """Advance the balance-seconds integral to `timestamp`, then apply the delta.

    Time between the last observation and `timestamp` accrues at the balance held
    before the delta. A withdrawal larger than the balance clamps it to zero.
    """
    if timestamp < account.last_observation_time:
        raise OutOfOrderEventError(account.id, timestamp, account.last_observation_time)

    elapsed = timestamp - account.last_observation_time
    cumulative = account.cumulative_balance_seconds + account.balance * elapsed
    balance = account.balance + signed_delta
    if balance < 0:
        logger.debug(
            "Clamping balance of account=%s to zero (balance=%s, delta=%s).",
            account.id,
            account.balance,
            signed_delta,
        )
        balance = 0

    return replace(
        account,
        balance=balance,
        cumulative_balance_seconds=cumulative,
        last_observation_time=timestamp,
    )


def record_delta(
    store: EntityStore,
    account: AccountBalance,
    timestamp: int,
    signed_delta: int,
) -> AccountBalance:
    """Accumulate a delta into a loaded account, touch its snapshot and persist both."""
    updated = accumulate(account, timestamp, signed_delta)
    updated, snapshot = touch_snapshot(store, updated)
    store.upsert(updated)
    store.upsert(snapshot)
    return updated


def apply_delta(
    store: EntityStore,
    account_id: str,
    timestamp: int,
    signed_delta: int,
    **attrs: Any,
) -> AccountBalance:
    """Apply one balance change to an account, creating it on first sight.

    `attrs` only populate descriptive fields (kind, vault_id, owner, token) of a
    newly created account; existing accounts keep theirs.
    """
    account: Optional[AccountBalance] = store.get(AccountBalance, account_id)
    if account is None:
        account = open_account(account_id, timestamp, **attrs)
    return record_delta(store, account, timestamp, signed_delta)


def apply_event(store: EntityStore, event: BalanceEvent, **attrs: Any) -> AccountBalance:
    return apply_delta(store, event.account_id, event.timestamp, event.signed_delta, **attrs)
