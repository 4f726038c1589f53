# Overview: Entity Store interface shared by the SQL and in-memory backends.

"""
Entity Store

One interface over products, customers and sales, with two
interchangeable backends:

- SqlEntityStore (sql_store.py): durable, Flask-SQLAlchemy transactions.
- MemoryEntityStore (memory_store.py): process-local, lock-serialized,
  for offline demo mode and tests.

Records cross this interface as plain dicts. Ids are opaque strings
generated by the store; every record carries exactly one owner_id, which
the store stamps on insert and checks (via the ownership guard) on every
access by id.

Multi-record writes go through run_in_transaction(func): func receives a
unit of work with the same get/insert/update/delete methods and every write
it makes commits together or not at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, TypeVar

from flask import current_app


PRODUCTS = "products"
CUSTOMERS = "customers"
SALES = "sales"

COLLECTIONS = (PRODUCTS, CUSTOMERS, SALES)

# Singular labels used in NotFound messages
LABELS = {
    PRODUCTS: "Product",
    CUSTOMERS: "Customer",
    SALES: "Sale",
}

EXTENSION_KEY = "agriferti.entity_store"

T = TypeVar("T")


class UnitOfWork(ABC):
    """Transactional view of the store handed to run_in_transaction callbacks."""

    @abstractmethod
    def get(self, collection: str, record_id: str, owner_id: str, *, lock: bool = False) -> dict:
        """Fetch one owned record. lock=True serializes writers on the record."""

    @abstractmethod
    def insert(self, collection: str, owner_id: str, fields: dict) -> dict:
        """Insert a record stamped with owner_id; returns it with its new id."""

    @abstractmethod
    def update(self, collection: str, record_id: str, owner_id: str, patch: dict) -> dict:
        """Apply patch to an owned record; returns the updated record."""

    @abstractmethod
    def delete(self, collection: str, record_id: str, owner_id: str) -> None:
        """Delete an owned record."""


class EntityStore(ABC):
    """Durable keyed storage for Product, Customer and Sale records."""

    backend_name = "abstract"

    @abstractmethod
    def get(self, collection: str, record_id: str, owner_id: str) -> dict:
        """Return the owned record or raise NotFoundError."""

    @abstractmethod
    def list(self, collection: str, owner_id: str) -> list[dict]:
        """All records of owner_id in insertion order."""

    @abstractmethod
    def run_in_transaction(self, func: Callable[[UnitOfWork], T]) -> T:
        """
        Run func against a unit of work and commit its writes atomically.

        ServiceErrors raised by func roll back and propagate unchanged.
        Store failures roll back and surface as TransactionFailedError.
        """

    @abstractmethod
    def ping(self) -> bool:
        """Cheap availability probe."""

    def insert(self, collection: str, owner_id: str, fields: dict) -> dict:
        return self.run_in_transaction(lambda unit: unit.insert(collection, owner_id, fields))

    def update(self, collection: str, record_id: str, owner_id: str, patch: dict) -> dict:
        return self.run_in_transaction(lambda unit: unit.update(collection, record_id, owner_id, patch))

    def delete(self, collection: str, record_id: str, owner_id: str) -> None:
        return self.run_in_transaction(lambda unit: unit.delete(collection, record_id, owner_id))


def check_collection(collection: str) -> str:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")
    return collection


def build_store(config: Any) -> EntityStore:
    """Construct the backend named by STORE_BACKEND."""
    backend = (config.get("STORE_BACKEND") or "sql").lower()

    if backend == "sql":
        from .sql_store import SqlEntityStore
        return SqlEntityStore(
            attempts=config.get("STORE_COMMIT_ATTEMPTS", 3),
            backoff_base=config.get("STORE_RETRY_BACKOFF", 0.1),
        )
    if backend == "memory":
        from .memory_store import MemoryEntityStore
        return MemoryEntityStore()

    raise ValueError(f"Unknown STORE_BACKEND: {backend!r} (expected 'sql' or 'memory')")


def get_store() -> EntityStore:
    """The entity store bound to the current app."""
    return current_app.extensions[EXTENSION_KEY]
