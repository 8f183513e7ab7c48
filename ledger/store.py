"""Keyed entity store contract and an in-process implementation."""

from __future__ import annotations

from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
import operator
from typing import Any, Callable, Iterator, Optional, Protocol, Sequence, TypeVar

E = TypeVar("E")

FILTER_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class FieldFilter:
    """One `(field, operator, value)` term of a conjunctive list filter."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")

    def matches(self, entity: Any) -> bool:
        return FILTER_OPERATORS[self.op](getattr(entity, self.field), self.value)


class EntityStore(Protocol):
    """Minimal keyed persistence protocol consumed by the ledger."""

    def get(self, entity_type: type[E], entity_id: str) -> Optional[E]:
        """Fetch one entity by id, or None when absent."""

    def upsert(self, entity: Any) -> None:
        """Insert or replace an entity by id (last write wins)."""

    def list(
        self,
        entity_type: type[E],
        filters: Sequence[FieldFilter],
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[E]:
        """List entities matching every filter, optionally ordered and limited."""

    def transaction(self) -> AbstractContextManager[None]:
        """Group the writes of one processed event into a single unit."""


class InMemoryEntityStore:
    """Dictionary-backed store for tests, replays and single-process use."""

    def __init__(self) -> None:
        self._rows: dict[type, dict[str, Any]] = {}

    def get(self, entity_type: type[E], entity_id: str) -> Optional[E]:
        return self._rows.get(entity_type, {}).get(entity_id)

    def upsert(self, entity: Any) -> None:
        self._rows.setdefault(type(entity), {})[entity.id] = entity

    def list(
        self,
        entity_type: type[E],
        filters: Sequence[FieldFilter],
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[E]:
        rows = [
            row
            for row in self._rows.get(entity_type, {}).values()
            if all(term.matches(row) for term in filters)
        ]
        if order_by is not None:
            rows.sort(key=lambda row: getattr(row, order_by), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Restore the pre-transaction rows if the block raises."""
        saved = {entity_type: dict(rows) for entity_type, rows in self._rows.items()}
        try:
            yield
        except BaseException:
            self._rows = saved
            raise

    def count(self, entity_type: type) -> int:
        return len(self._rows.get(entity_type, {}))

    def reset(self) -> None:
        self._rows.clear()
