"""Per-processor counter model definitions."""

from __future__ import annotations

import logging

from sqlalchemy import BigInteger, CheckConstraint, Integer, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base

logger = logging.getLogger(__name__)


class VaultStats(Base):
    __tablename__ = "vault_stats"
    __table_args__ = (
        PrimaryKeyConstraint("stats_id", name="pk_vault_stats"),
        CheckConstraint("total_vault_count >= 0", name="ck_vault_stats_count_nonneg"),
    )

    id: Mapped[str] = mapped_column("stats_id", Text, primary_key=True)
    total_vault_count: Mapped[int] = mapped_column(Integer, nullable=False)
    last_update_time: Mapped[int] = mapped_column(BigInteger, nullable=False)


class FungibleAssetStats(Base):
    __tablename__ = "fungible_asset_stats"
    __table_args__ = (
        PrimaryKeyConstraint("stats_id", name="pk_fungible_asset_stats"),
        CheckConstraint(
            "total_deposit_count >= 0 AND total_withdraw_count >= 0",
            name="ck_fungible_asset_stats_counts_nonneg",
        ),
        CheckConstraint(
            "tracked_store_count <= unique_store_count",
            name="ck_fungible_asset_stats_tracked_le_unique",
        ),
    )

    id: Mapped[str] = mapped_column("stats_id", Text, primary_key=True)
    total_deposit_count: Mapped[int] = mapped_column(Integer, nullable=False)
    total_withdraw_count: Mapped[int] = mapped_column(Integer, nullable=False)
    unique_store_count: Mapped[int] = mapped_column(Integer, nullable=False)
    tracked_store_count: Mapped[int] = mapped_column(Integer, nullable=False)
    last_update_time: Mapped[int] = mapped_column(BigInteger, nullable=False)


class StakingStats(Base):
    __tablename__ = "staking_stats"
    __table_args__ = (
        PrimaryKeyConstraint("stats_id", name="pk_staking_stats"),
        CheckConstraint(
            "total_stake_count >= 0 AND total_unstake_count >= 0",
            name="ck_staking_stats_counts_nonneg",
        ),
        CheckConstraint(
            "tracked_staker_count <= unique_user_count",
            name="ck_staking_stats_tracked_le_unique",
        ),
    )

    id: Mapped[str] = mapped_column("stats_id", Text, primary_key=True)
    total_stake_count: Mapped[int] = mapped_column(Integer, nullable=False)
    total_unstake_count: Mapped[int] = mapped_column(Integer, nullable=False)
    unique_user_count: Mapped[int] = mapped_column(Integer, nullable=False)
    tracked_staker_count: Mapped[int] = mapped_column(Integer, nullable=False)
    last_update_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
