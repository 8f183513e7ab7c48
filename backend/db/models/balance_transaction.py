"""Audit trail model definitions for applied balance events."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base
from backend.db.enums import account_kind_enum, transaction_type_enum
from backend.db.types import TokenAmount
from ledger.entities import AccountKind, TransactionType

logger = logging.getLogger(__name__)


class BalanceTransaction(Base):
    """Append-only record of one balance-changing chain event."""

    __tablename__ = "balance_transaction"
    __table_args__ = (
        PrimaryKeyConstraint("transaction_id", name="pk_balance_transaction"),
        CheckConstraint(
            "amount >= 0",
            name="ck_balance_transaction_amount_nonneg",
        ),
        CheckConstraint(
            "event_index >= 0",
            name="ck_balance_transaction_event_index_nonneg",
        ),
        Index("idx_balance_transaction_account_timestamp", "account_id", "timestamp"),
    )

    id: Mapped[str] = mapped_column("transaction_id", Text, primary_key=True)
    account_id: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[AccountKind] = mapped_column(account_kind_enum, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    type: Mapped[TransactionType] = mapped_column(transaction_type_enum, nullable=False)
    amount: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    transaction_version: Mapped[int] = mapped_column(BigInteger, nullable=False)
    event_index: Mapped[int] = mapped_column(Integer, nullable=False)
    signer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class LedgerUser(Base):
    """Staker registry keyed by address."""

    __tablename__ = "ledger_user"
    __table_args__ = (PrimaryKeyConstraint("user_address", name="pk_ledger_user"),)

    id: Mapped[str] = mapped_column("user_address", Text, primary_key=True)
    first_seen_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
