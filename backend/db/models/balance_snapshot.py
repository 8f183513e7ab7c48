"""Balance snapshot log model definitions."""

from __future__ import annotations

import logging

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    PrimaryKeyConstraint,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base
from backend.db.types import TokenAmount

logger = logging.getLogger(__name__)


class BalanceSnapshot(Base):
    """Bounded-lifetime checkpoint of an account balance."""

    __tablename__ = "balance_snapshot"
    __table_args__ = (
        PrimaryKeyConstraint("account_id", "sequence", name="pk_balance_snapshot"),
        CheckConstraint(
            "sequence >= 1",
            name="ck_balance_snapshot_sequence_pos",
        ),
        CheckConstraint(
            "filled_at <= last_update_time",
            name="ck_balance_snapshot_window_order",
        ),
        CheckConstraint(
            "balance >= 0",
            name="ck_balance_snapshot_balance_nonneg",
        ),
        CheckConstraint(
            "cumulative_balance_seconds >= 0",
            name="ck_balance_snapshot_cumulative_nonneg",
        ),
        Index(
            "idx_balance_snapshot_account_filled_at_desc",
            "account_id",
            text("filled_at DESC"),
        ),
    )

    account_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("account_balance.account_id", ondelete="RESTRICT"),
        primary_key=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, primary_key=True)
    filled_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    cumulative_balance_seconds: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    last_update_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
