"""Column types shared across ledger models."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import BigInteger, Numeric
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

logger = logging.getLogger(__name__)

AMOUNT_PRECISION = 78


class TokenAmount(TypeDecorator[int]):
    """Exact unbounded integer amount.

    Balances are u64 on chain and balance-seconds overflow BIGINT, so PostgreSQL
    stores NUMERIC(78, 0). Other dialects fall back to BIGINT.
    """

    impl = BigInteger
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Numeric(AMOUNT_PRECISION, 0))
        return dialect.type_descriptor(BigInteger())

    def process_bind_param(self, value: Optional[int], dialect: Dialect) -> Optional[int]:
        return None if value is None else int(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> Optional[int]:
        return None if value is None else int(value)
