"""Interpolation queries over the snapshot log."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_EVEN, localcontext
from fractions import Fraction
from typing import Optional

from ledger.entities import BalanceSnapshot
from ledger.errors import QueryRangeError, SnapshotSelectionError
from ledger.store import EntityStore, FieldFilter

NUMERIC_18 = Decimal("0.000000000000000001")

_DECIMAL_PRECISION = 120


def find_bracketing_snapshots(
    store: EntityStore,
    account_id: str,
    at: int,
) -> tuple[Optional[BalanceSnapshot], Optional[BalanceSnapshot]]:
    """Return the latest snapshot filled at or before `at` and its predecessor."""
    rows = store.list(
        BalanceSnapshot,
        [
            FieldFilter("account_id", "=", account_id),
            FieldFilter("filled_at", "<=", at),
        ],
        order_by="filled_at",
        descending=True,
        limit=2,
    )
    if not rows:
        return None, None

    current = rows[0]
    previous = rows[1] if len(rows) > 1 else None
    if current.sequence > 1 and (previous is None or previous.sequence != current.sequence - 1):
        found = previous.sequence if previous is not None else None
        raise SnapshotSelectionError(
            f"Snapshot {current.id} selected for at={at} but predecessor sequence "
            f"{current.sequence - 1} was not found (got {found})."
        )
    return current, previous


def cumulative_at(
    at: int,
    current: Optional[BalanceSnapshot],
    previous: Optional[BalanceSnapshot],
) -> Fraction:
    """Estimate the balance-seconds integral at `at` from its bracketing snapshots.

    Past the snapshot's last update the integral is extrapolated at the last
    balance. Inside the snapshot window the average rate of the window is used,
    so intra-window values are approximate while window edges are exact.
    """
    if current is None:
        return Fraction(0)

    if at >= current.last_update_time:
        return Fraction(
            current.cumulative_balance_seconds + current.balance * (at - current.last_update_time)
        )

    if at < current.filled_at:
        raise SnapshotSelectionError(
            f"Query time at={at} precedes filled_at={current.filled_at} of snapshot {current.id}."
        )

    if previous is not None:
        cumulative_at_filled = previous.cumulative_balance_seconds + previous.balance * (
            current.filled_at - previous.last_update_time
        )
    else:
        cumulative_at_filled = 0

    window = current.last_update_time - current.filled_at
    if window == 0:
        rate = Fraction(current.balance)
    else:
        rate = Fraction(current.cumulative_balance_seconds - cumulative_at_filled, window)
    return cumulative_at_filled + rate * (at - current.filled_at)


def account_cumulative_at(store: EntityStore, account_id: str, at: int) -> Fraction:
    current, previous = find_bracketing_snapshots(store, account_id, at)
    return cumulative_at(at, current, previous)


def balance_seconds_between(store: EntityStore, account_id: str, start: int, end: int) -> Fraction:
    """Balance-seconds accrued by an account over `[start, end]`."""
    if start >= end:
        raise QueryRangeError(f"Invalid query range: start={start} must be before end={end}.")
    return account_cumulative_at(store, account_id, end) - account_cumulative_at(store, account_id, start)


def average_balance(store: EntityStore, account_id: str, start: int, end: int) -> Fraction:
    """Time-weighted average balance of an account over `[start, end]`."""
    return balance_seconds_between(store, account_id, start, end) / (end - start)


def to_decimal(value: Fraction, scale: Decimal = NUMERIC_18) -> Decimal:
    """Render an exact query result as a quantized decimal."""
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        quotient = Decimal(value.numerator) / Decimal(value.denominator)
        return quotient.quantize(scale, rounding=ROUND_HALF_EVEN)
