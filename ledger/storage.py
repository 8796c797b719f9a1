"""Persistence utilities for the ledger core services."""

from __future__ import annotations

import json
from dataclasses import replace
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, TypeVar
from uuid import uuid4

from .exceptions import PersistenceError
from .models import INCOME, OUTCOME, Balance, Category, Transaction

T = TypeVar("T", Category, Transaction)


class JSONStorage:
    """Simple file-based JSON storage with crash-safe writes."""

    def __init__(self, base_path: Path) -> None:
        self._base_path = base_path
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Unable to create data directory {base_path}") from exc

    def load(self, resource: str) -> List[Dict[str, Any]]:
        path = self._base_path / resource
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

        if not isinstance(payload, list):
            raise PersistenceError(f"Expected list payload in {path}")
        return payload

    def save(self, resource: str, records: Iterable[Dict[str, Any]]) -> None:
        path = self._base_path / resource
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(list(records), handle, indent=2)
                handle.flush()
            # Atomic move on POSIX.
            temp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc


class Repository(Generic[T]):
    """Entity collection backed by one JSON resource.

    Records are cached in memory and the whole collection is written back on
    every mutation. ``create`` only builds an unsaved entity; ``save`` assigns
    an identifier to new entities and persists them.
    """

    def __init__(
        self,
        storage: JSONStorage,
        resource: str,
        factory: Callable[..., T],
        loader: Callable[[Dict[str, Any]], T],
    ) -> None:
        self._storage = storage
        self._resource = resource
        self._factory = factory
        self._loader = loader
        self._records: Dict[str, T] = {}
        self.load()

    def load(self) -> None:
        raw_records = self._storage.load(self._resource)
        try:
            self._records = {payload["id"]: self._loader(payload) for payload in raw_records}
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Malformed record in {self._resource}") from exc

    def find_one(self, **criteria: object) -> Optional[T]:
        for record in self._records.values():
            if _matches(record, criteria):
                return record
        return None

    def find(self, **criteria: object) -> List[T]:
        return [record for record in self._records.values() if _matches(record, criteria)]

    def create(self, **fields: object) -> T:
        return self._factory(id=None, **fields)

    def save(self, entity: T) -> T:
        if entity.id is None:
            entity = replace(entity, id=str(uuid4()))
        self._check(entity)

        previous = self._records.get(entity.id)
        self._records[entity.id] = entity
        try:
            self._persist()
        except PersistenceError:
            self._restore(entity.id, previous)
            raise
        return entity

    def delete(self, record_id: str) -> None:
        previous = self._records.pop(record_id, None)
        if previous is None:
            return
        try:
            self._persist()
        except PersistenceError:
            self._restore(record_id, previous)
            raise

    def _check(self, entity: T) -> None:
        """Hook for constraint checks run before an entity is stored."""

    def _restore(self, record_id: str, previous: Optional[T]) -> None:
        if previous is None:
            self._records.pop(record_id, None)
        else:
            self._records[record_id] = previous

    def _persist(self) -> None:
        try:
            self._storage.save(
                self._resource, [record.to_dict() for record in self._records.values()]
            )
        except PersistenceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            raise PersistenceError(f"Unexpected error while saving {self._resource}") from exc


class CategoryRepository(Repository[Category]):
    """Categories keyed by id with one record per exact title."""

    def __init__(self, storage: JSONStorage, resource: str = "categories.json") -> None:
        super().__init__(storage, resource, Category, Category.from_dict)

    def _check(self, entity: Category) -> None:
        existing = self.find_one(title=entity.title)
        if existing is not None and existing.id != entity.id:
            raise PersistenceError(f"Category '{entity.title}' already exists")


class TransactionRepository(Repository[Transaction]):
    """Transactions plus the balance aggregation query."""

    def __init__(
        self,
        storage: JSONStorage,
        categories: CategoryRepository,
        resource: str = "transactions.json",
    ) -> None:
        self._categories = categories
        super().__init__(storage, resource, Transaction, Transaction.from_dict)

    def get_balance(self) -> Balance:
        income = Decimal("0.00")
        outcome = Decimal("0.00")
        for transaction in self._records.values():
            if transaction.type == INCOME:
                income += transaction.value
            elif transaction.type == OUTCOME:
                outcome += transaction.value
        return Balance(income=income, outcome=outcome)

    def _check(self, entity: Transaction) -> None:
        if self._categories.find_one(id=entity.category_id) is None:
            raise PersistenceError(
                f"Transaction references unknown category {entity.category_id}"
            )


def _matches(record: object, criteria: Dict[str, object]) -> bool:
    return all(getattr(record, key) == value for key, value in criteria.items())
