"""Account balance model definitions."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Integer, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base
from backend.db.enums import account_kind_enum
from backend.db.types import TokenAmount
from ledger.entities import AccountKind

logger = logging.getLogger(__name__)


class AccountBalance(Base):
    """Running balance and balance-seconds integral per tracked subject."""

    __tablename__ = "account_balance"
    __table_args__ = (
        PrimaryKeyConstraint("account_id", name="pk_account_balance"),
        CheckConstraint(
            "length(account_id) > 0",
            name="ck_account_balance_id_not_blank",
        ),
        CheckConstraint(
            "balance >= 0",
            name="ck_account_balance_balance_nonneg",
        ),
        CheckConstraint(
            "cumulative_balance_seconds >= 0",
            name="ck_account_balance_cumulative_nonneg",
        ),
        CheckConstraint(
            "snapshot_count >= 0",
            name="ck_account_balance_snapshot_count_nonneg",
        ),
    )

    id: Mapped[str] = mapped_column("account_id", Text, primary_key=True)
    kind: Mapped[AccountKind] = mapped_column(account_kind_enum, nullable=False)
    vault_id: Mapped[Optional[str]] = mapped_column(
        Text,
        ForeignKey("vault.vault_id", ondelete="RESTRICT"),
        nullable=True,
    )
    owner: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    balance: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    last_observation_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    cumulative_balance_seconds: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    snapshot_count: Mapped[int] = mapped_column(Integer, nullable=False)
