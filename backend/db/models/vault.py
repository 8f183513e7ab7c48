"""Vault registry and store identity cache model definitions."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base

logger = logging.getLogger(__name__)


class Vault(Base):
    """Vault whose share token positions are tracked."""

    __tablename__ = "vault"
    __table_args__ = (
        PrimaryKeyConstraint("vault_id", name="pk_vault"),
        CheckConstraint(
            "created_at_version >= 0",
            name="ck_vault_created_at_version_nonneg",
        ),
        Index("idx_vault_shares_metadata", "shares_metadata"),
    )

    id: Mapped[str] = mapped_column("vault_id", Text, primary_key=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    shares_metadata: Mapped[str] = mapped_column(Text, nullable=False)
    created_at_version: Mapped[int] = mapped_column(BigInteger, nullable=False)


class StoreMetadataCache(Base):
    """Resolved fungible asset metadata per store address."""

    __tablename__ = "store_metadata_cache"
    __table_args__ = (
        PrimaryKeyConstraint("store_address", name="pk_store_metadata_cache"),
        CheckConstraint(
            "(is_tracked AND vault_id IS NOT NULL) OR (NOT is_tracked AND vault_id IS NULL)",
            name="ck_store_metadata_cache_vault_iff_tracked",
        ),
    )

    id: Mapped[str] = mapped_column("store_address", Text, primary_key=True)
    metadata_address: Mapped[str] = mapped_column("metadata", Text, nullable=False)
    is_tracked: Mapped[bool] = mapped_column(Boolean, nullable=False)
    vault_id: Mapped[Optional[str]] = mapped_column(
        Text,
        ForeignKey("vault.vault_id", ondelete="RESTRICT"),
        nullable=True,
    )
