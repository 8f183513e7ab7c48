"""SQLAlchemy-backed implementation of the ledger entity store."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field, fields
import logging
from typing import Any, Callable, Iterator, Optional, Sequence, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from backend.db import models
from ledger import entities
from ledger.store import FILTER_OPERATORS, FieldFilter

logger = logging.getLogger(__name__)

E = TypeVar("E")


def _snapshot_key(entity_id: str) -> tuple[str, int]:
    account_id, _, sequence = entity_id.rpartition("-")
    if not account_id or not sequence.isdigit():
        raise ValueError(f"Invalid snapshot id: {entity_id}")
    return account_id, int(sequence)


@dataclass(frozen=True)
class EntityMapping:
    """Binding of an entity dataclass to its ORM model."""

    model: type
    renames: dict[str, str] = field(default_factory=dict)
    key: Callable[[str], Any] = lambda entity_id: entity_id

    def column(self, name: str) -> Any:
        return getattr(self.model, self.renames.get(name, name))

    def to_row(self, entity: Any) -> Any:
        values = {self.renames.get(f.name, f.name): getattr(entity, f.name) for f in fields(entity)}
        return self.model(**values)

    def to_entity(self, entity_type: type[E], row: Any) -> E:
        values = {f.name: getattr(row, self.renames.get(f.name, f.name)) for f in fields(entity_type)}
        return entity_type(**values)


ENTITY_MAPPINGS: dict[type, EntityMapping] = {
    entities.AccountBalance: EntityMapping(models.AccountBalance),
    entities.BalanceSnapshot: EntityMapping(models.BalanceSnapshot, key=_snapshot_key),
    entities.Vault: EntityMapping(models.Vault),
    entities.StoreMetadataCache: EntityMapping(
        models.StoreMetadataCache,
        renames={"metadata": "metadata_address"},
    ),
    entities.BalanceTransaction: EntityMapping(models.BalanceTransaction),
    entities.User: EntityMapping(models.LedgerUser),
    entities.VaultStats: EntityMapping(models.VaultStats),
    entities.FungibleAssetStats: EntityMapping(models.FungibleAssetStats),
    entities.StakingStats: EntityMapping(models.StakingStats),
}


def _mapping_for(entity_type: type) -> EntityMapping:
    mapping = ENTITY_MAPPINGS.get(entity_type)
    if mapping is None:
        raise TypeError(f"No table mapping registered for entity type {entity_type.__name__}")
    return mapping


class SqlAlchemyEntityStore:
    """Entity store persisting ledger entities through SQLAlchemy sessions.

    Outside `transaction()` every call commits on its own. Inside it, all calls
    share one session and commit together when the block exits cleanly.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Optional[Session] = None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._session is not None:
            yield
            return
        with self._session_factory() as session:
            self._session = session
            try:
                with session.begin():
                    yield
            finally:
                self._session = None

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        if self._session is not None:
            yield self._session
            return
        with self._session_factory() as session, session.begin():
            yield session

    def get(self, entity_type: type[E], entity_id: str) -> Optional[E]:
        mapping = _mapping_for(entity_type)
        with self._session_scope() as session:
            row = session.get(mapping.model, mapping.key(entity_id))
            return None if row is None else mapping.to_entity(entity_type, row)

    def upsert(self, entity: Any) -> None:
        mapping = _mapping_for(type(entity))
        with self._session_scope() as session:
            session.merge(mapping.to_row(entity))

    def list(
        self,
        entity_type: type[E],
        filters: Sequence[FieldFilter],
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[E]:
        mapping = _mapping_for(entity_type)
        stmt = select(mapping.model)
        if filters:
            stmt = stmt.where(
                *(FILTER_OPERATORS[term.op](mapping.column(term.field), term.value) for term in filters)
            )
        if order_by is not None:
            column = mapping.column(order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session_scope() as session:
            rows = session.scalars(stmt).all()
            return [mapping.to_entity(entity_type, row) for row in rows]
