"""Model module imports for SQLAlchemy metadata registration."""

from __future__ import annotations

import logging

from backend.db.models.account_balance import AccountBalance
from backend.db.models.balance_snapshot import BalanceSnapshot
from backend.db.models.balance_transaction import BalanceTransaction, LedgerUser
from backend.db.models.stats import FungibleAssetStats, StakingStats, VaultStats
from backend.db.models.vault import StoreMetadataCache, Vault

logger = logging.getLogger(__name__)

__all__ = [
    "AccountBalance",
    "BalanceSnapshot",
    "BalanceTransaction",
    "FungibleAssetStats",
    "LedgerUser",
    "StakingStats",
    "StoreMetadataCache",
    "Vault",
    "VaultStats",
]
