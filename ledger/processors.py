"""Event processors wiring decoded chain events into the ledger."""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Callable, Iterable, Optional

from ledger.accumulator import open_account, record_delta
from ledger.entities import (
    GLOBAL_STATS_ID,
    AccountBalance,
    AccountKind,
    BalanceTransaction,
    FungibleAssetStats,
    StakingStats,
    TransactionType,
    User,
    Vault,
    VaultStats,
    staking_account_id,
)
from ledger.errors import EventDecodeError
from ledger.events import (
    RawEvent,
    decode_fungible_asset_event,
    decode_staking_event,
    decode_vault_created_event,
)
from ledger.identity import StoreIdentityResolver, find_vault_by_shares
from ledger.store import EntityStore

logger = logging.getLogger(__name__)


def _signed(transaction_type: TransactionType, amount: int) -> int:
    if transaction_type in (TransactionType.DEPOSIT, TransactionType.STAKE):
        return amount
    return -amount


def load_vault_stats(store: EntityStore, timestamp: int) -> VaultStats:
    stats = store.get(VaultStats, GLOBAL_STATS_ID)
    if stats is None:
        stats = VaultStats(id=GLOBAL_STATS_ID, total_vault_count=0, last_update_time=timestamp)
    return stats


def load_fungible_asset_stats(store: EntityStore, timestamp: int) -> FungibleAssetStats:
    stats = store.get(FungibleAssetStats, GLOBAL_STATS_ID)
    if stats is None:
        stats = FungibleAssetStats(
            id=GLOBAL_STATS_ID,
            total_deposit_count=0,
            total_withdraw_count=0,
            unique_store_count=0,
            tracked_store_count=0,
            last_update_time=timestamp,
        )
    return stats


def load_staking_stats(store: EntityStore, timestamp: int) -> StakingStats:
    stats = store.get(StakingStats, GLOBAL_STATS_ID)
    if stats is None:
        stats = StakingStats(
            id=GLOBAL_STATS_ID,
            total_stake_count=0,
            total_unstake_count=0,
            unique_user_count=0,
            tracked_staker_count=0,
            last_update_time=timestamp,
        )
    return stats


class VaultProcessor:
    """Registers vaults whose share tokens are tracked by the ledger."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def on_vault_created(self, event: RawEvent) -> Vault:
        decoded = decode_vault_created_event(event)
        timestamp = event.timestamp
        vault = Vault(
            id=decoded.vault,
            created_at=timestamp,
            shares_metadata=decoded.shares_metadata,
            created_at_version=event.version,
        )
        stats = load_vault_stats(self._store, timestamp)
        stats = replace(stats, total_vault_count=stats.total_vault_count + 1, last_update_time=timestamp)

        self._store.upsert(vault)
        self._store.upsert(stats)
        logger.info("New vault created: %s with shares metadata: %s", vault.id, vault.shares_metadata)
        return vault


class FungibleAssetProcessor:
    """Tracks balances of fungible stores holding vault shares."""

    def __init__(self, store: EntityStore, resolver: StoreIdentityResolver) -> None:
        self._store = store
        self._resolver = resolver

    def on_deposit(self, event: RawEvent) -> Optional[AccountBalance]:
        return self._process(event, TransactionType.DEPOSIT)

    def on_withdraw(self, event: RawEvent) -> Optional[AccountBalance]:
        return self._process(event, TransactionType.WITHDRAW)

    def _process(self, event: RawEvent, transaction_type: TransactionType) -> Optional[AccountBalance]:
        decoded = decode_fungible_asset_event(event)
        timestamp = event.timestamp

        identity = self._resolver.resolve(decoded.store, ledger_version=event.version)
        if not identity.is_tracked:
            return None

        stats = load_fungible_asset_stats(self._store, timestamp)
        account = self._store.get(AccountBalance, decoded.store)
        if account is None:
            account = open_account(
                decoded.store,
                timestamp,
                kind=AccountKind.FUNGIBLE_STORE,
                vault_id=identity.vault_id,
                owner=decoded.store,
            )
            stats = replace(
                stats,
                unique_store_count=stats.unique_store_count + 1,
                tracked_store_count=stats.tracked_store_count + 1,
            )

        updated = record_delta(self._store, account, timestamp, _signed(transaction_type, decoded.amount))

        if transaction_type is TransactionType.DEPOSIT:
            stats = replace(stats, total_deposit_count=stats.total_deposit_count + 1)
        else:
            stats = replace(stats, total_withdraw_count=stats.total_withdraw_count + 1)

        self._store.upsert(
            BalanceTransaction(
                id=event.transaction_id,
                account_id=updated.id,
                kind=AccountKind.FUNGIBLE_STORE,
                timestamp=timestamp,
                type=transaction_type,
                amount=decoded.amount,
                transaction_version=event.version,
                event_index=event.event_index,
                signer=event.sender,
            )
        )
        self._store.upsert(replace(stats, last_update_time=timestamp))
        return updated


class StakingProcessor:
    """Tracks staked vault share positions per (user, staking token)."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def on_stake(self, event: RawEvent) -> Optional[AccountBalance]:
        return self._process(event, TransactionType.STAKE)

    def on_unstake(self, event: RawEvent) -> Optional[AccountBalance]:
        return self._process(event, TransactionType.UNSTAKE)

    def _process(self, event: RawEvent, transaction_type: TransactionType) -> Optional[AccountBalance]:
        decoded = decode_staking_event(event)
        timestamp = event.timestamp

        vault = find_vault_by_shares(self._store, decoded.staking_token)
        if vault is None:
            return None

        stats = load_staking_stats(self._store, timestamp)
        user = self._store.get(User, decoded.user)
        if user is None:
            user = User(id=decoded.user, first_seen_at=timestamp)
            stats = replace(
                stats,
                unique_user_count=stats.unique_user_count + 1,
                tracked_staker_count=stats.tracked_staker_count + 1,
            )

        account_id = staking_account_id(decoded.user, decoded.staking_token)
        account = self._store.get(AccountBalance, account_id)
        if account is None:
            account = open_account(
                account_id,
                timestamp,
                kind=AccountKind.STAKING,
                vault_id=vault.id,
                owner=decoded.user,
                token=decoded.staking_token,
            )

        updated = record_delta(self._store, account, timestamp, _signed(transaction_type, decoded.amount))

        if transaction_type is TransactionType.STAKE:
            stats = replace(stats, total_stake_count=stats.total_stake_count + 1)
        else:
            stats = replace(stats, total_unstake_count=stats.total_unstake_count + 1)

        self._store.upsert(user)
        self._store.upsert(
            BalanceTransaction(
                id=event.transaction_id,
                account_id=account_id,
                kind=AccountKind.STAKING,
                timestamp=timestamp,
                type=transaction_type,
                amount=decoded.amount,
                transaction_version=event.version,
                event_index=event.event_index,
                user_id=decoded.user,
            )
        )
        self._store.upsert(replace(stats, last_update_time=timestamp))
        return updated


class EventDispatcher:
    """Sequential event loop routing raw events to their processor.

    Each event runs inside one store transaction so an account and its snapshot
    are committed together.
    """

    def __init__(
        self,
        store: EntityStore,
        resolver: StoreIdentityResolver,
        *,
        start_version: int = 0,
    ) -> None:
        self._store = store
        self._start_version = start_version
        vaults = VaultProcessor(store)
        fungible = FungibleAssetProcessor(store, resolver)
        staking = StakingProcessor(store)
        self._handlers: dict[str, Callable[[RawEvent], object]] = {
            "VaultCreated": vaults.on_vault_created,
            "Deposit": fungible.on_deposit,
            "Withdraw": fungible.on_withdraw,
            "StakeEvent": staking.on_stake,
            "WithdrawEvent": staking.on_unstake,
        }

    def dispatch(self, event: RawEvent) -> object:
        handler = self._handlers.get(event.name)
        if handler is None:
            raise EventDecodeError(f"Unsupported event name: {event.name}")
        if event.version < self._start_version:
            logger.debug("Skipping %s at version=%s before start version.", event.name, event.version)
            return None
        with self._store.transaction():
            return handler(event)

    def dispatch_all(self, events: Iterable[RawEvent]) -> int:
        """Dispatch events in order and return how many were at or past the start version."""
        processed = 0
        for event in events:
            if event.version >= self._start_version:
                processed += 1
            self.dispatch(event)
        return processed
