"""Entity records persisted through the entity store."""

from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Optional

GLOBAL_STATS_ID = "global"


class AccountKind(str, enum.Enum):
    """Kind of tracked subject behind an account."""

    FUNGIBLE_STORE = "FUNGIBLE_STORE"
    STAKING = "STAKING"


class TransactionType(str, enum.Enum):
    """Balance-changing event type."""

    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    STAKE = "STAKE"
    UNSTAKE = "UNSTAKE"


def snapshot_id(account_id: str, sequence: int) -> str:
    return f"{account_id}-{sequence}"


def staking_account_id(user: str, staking_token: str) -> str:
    return f"{user}-{staking_token}"


@dataclass(frozen=True)
class AccountBalance:
    """Running balance and balance-seconds integral of one tracked subject."""

    id: str
    balance: int
    last_observation_time: int
    cumulative_balance_seconds: int
    snapshot_count: int
    kind: AccountKind = AccountKind.FUNGIBLE_STORE
    vault_id: Optional[str] = None
    owner: Optional[str] = None
    token: Optional[str] = None


@dataclass(frozen=True)
class BalanceSnapshot:
    """Bounded-lifetime checkpoint of an account's running state."""

    account_id: str
    sequence: int
    filled_at: int
    balance: int
    cumulative_balance_seconds: int
    last_update_time: int

    @property
    def id(self) -> str:
        return snapshot_id(self.account_id, self.sequence)


@dataclass(frozen=True)
class Vault:
    id: str
    created_at: int
    shares_metadata: str
    created_at_version: int


@dataclass(frozen=True)
class StoreMetadataCache:
    """Cached identity of a fungible store: its asset metadata and vault, if tracked."""

    id: str
    metadata: str
    is_tracked: bool
    vault_id: Optional[str] = None


@dataclass(frozen=True)
class BalanceTransaction:
    """Audit record of one applied balance-changing event."""

    id: str
    account_id: str
    kind: AccountKind
    timestamp: int
    type: TransactionType
    amount: int
    transaction_version: int
    event_index: int
    signer: Optional[str] = None
    user_id: Optional[str] = None


@dataclass(frozen=True)
class User:
    id: str
    first_seen_at: int


@dataclass(frozen=True)
class VaultStats:
    id: str
    total_vault_count: int
    last_update_time: int


@dataclass(frozen=True)
class FungibleAssetStats:
    id: str
    total_deposit_count: int
    total_withdraw_count: int
    unique_store_count: int
    tracked_store_count: int
    last_update_time: int


@dataclass(frozen=True)
class StakingStats:
    id: str
    total_stake_count: int
    total_unstake_count: int
    unique_user_count: int
    tracked_staker_count: int
    last_update_time: int
