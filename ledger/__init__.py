"""Balance-seconds ledger: accumulator, snapshot log and interpolation queries."""

from ledger.accumulator import accumulate, apply_delta, apply_event, open_account, record_delta
from ledger.entities import (
    AccountBalance,
    AccountKind,
    BalanceSnapshot,
    BalanceTransaction,
    FungibleAssetStats,
    StakingStats,
    StoreMetadataCache,
    TransactionType,
    User,
    Vault,
    VaultStats,
)
from ledger.errors import (
    EventDecodeError,
    IdentityResolutionError,
    LedgerError,
    OutOfOrderEventError,
    QueryRangeError,
    SnapshotSelectionError,
)
from ledger.events import BalanceEvent, RawEvent
from ledger.query import average_balance, balance_seconds_between, cumulative_at, find_bracketing_snapshots
from ledger.snapshots import SNAPSHOT_LIFETIME_SECONDS, touch_snapshot
from ledger.store import EntityStore, FieldFilter, InMemoryEntityStore

__all__ = [
    "AccountBalance",
    "AccountKind",
    "BalanceEvent",
    "BalanceSnapshot",
    "BalanceTransaction",
    "EntityStore",
    "EventDecodeError",
    "FieldFilter",
    "FungibleAssetStats",
    "IdentityResolutionError",
    "InMemoryEntityStore",
    "LedgerError",
    "OutOfOrderEventError",
    "QueryRangeError",
    "RawEvent",
    "SNAPSHOT_LIFETIME_SECONDS",
    "SnapshotSelectionError",
    "StakingStats",
    "StoreMetadataCache",
    "TransactionType",
    "User",
    "Vault",
    "VaultStats",
    "accumulate",
    "apply_delta",
    "apply_event",
    "average_balance",
    "balance_seconds_between",
    "cumulative_at",
    "find_bracketing_snapshots",
    "open_account",
    "record_delta",
    "touch_snapshot",
]
