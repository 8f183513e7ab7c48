"""Database enum contracts for the ledger schema."""

from __future__ import annotations

import logging

from sqlalchemy import Enum

from ledger.entities import AccountKind, TransactionType

logger = logging.getLogger(__name__)


def _values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


# Native ENUM types on PostgreSQL, VARCHAR elsewhere.
account_kind_enum = Enum(AccountKind, name="account_kind_enum", values_callable=_values)
transaction_type_enum = Enum(TransactionType, name="transaction_type_enum", values_callable=_values)
