"""Error taxonomy for the balance-seconds ledger."""

from __future__ import annotations


class LedgerError(RuntimeError):
    """Raised when ledger preconditions fail."""


class OutOfOrderEventError(LedgerError):
    """Raised when an event timestamp precedes the account's last observation."""

    def __init__(self, account_id: str, timestamp: int, last_observation_time: int) -> None:
        super().__init__(
            f"Out-of-order event for account={account_id}: "
            f"timestamp={timestamp} < last_observation_time={last_observation_time}."
        )
        self.account_id = account_id
        self.timestamp = timestamp
        self.last_observation_time = last_observation_time


class QueryRangeError(LedgerError):
    """Raised when an average-balance query range is empty or inverted."""


class SnapshotSelectionError(LedgerError):
    """Raised when the snapshot log does not bracket a query time as expected."""


class IdentityResolutionError(LedgerError):
    """Raised when a store's fungible asset metadata cannot be resolved."""


class EventDecodeError(ValueError):
    """Raised when a raw event payload is missing fields or malformed."""
