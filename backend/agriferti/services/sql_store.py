# Overview: Durable Entity Store backend on Flask-SQLAlchemy.

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..errors import ServiceError, TransactionFailedError
from ..extensions import db
from ..models import Customer, Product, Sale
from .concurrency import TRANSIENT_ERRORS, lock_for_update, run_with_retry
from .entity_store import (
    CUSTOMERS,
    LABELS,
    PRODUCTS,
    SALES,
    EntityStore,
    UnitOfWork,
    check_collection,
)
from .ownership import SERVER_MANAGED_FIELDS, ensure_owned


logger = logging.getLogger(__name__)

MODELS = {
    PRODUCTS: Product,
    CUSTOMERS: Customer,
    SALES: Sale,
}

# String ids at the interface, integer keys in the database
REFERENCE_FIELDS = ("product_id", "customer_id")


def _parse_id(record_id) -> int | None:
    if isinstance(record_id, int) and not isinstance(record_id, bool):
        return record_id
    if isinstance(record_id, str) and record_id.strip().isdigit():
        return int(record_id.strip())
    return None


def _clean_fields(fields: dict) -> dict:
    data = {k: v for k, v in fields.items() if k not in SERVER_MANAGED_FIELDS}
    for key in REFERENCE_FIELDS:
        if key in data:
            parsed = _parse_id(data[key])
            if parsed is None:
                raise ValueError(f"{key} must reference an existing record")
            data[key] = parsed
    return data


class SqlUnitOfWork(UnitOfWork):
    """Writes are flushed, never committed; SqlEntityStore owns the commit."""

    def __init__(self, session):
        self._session = session

    def _row(self, collection: str, record_id: str, owner_id: str, *, lock: bool = False):
        model = MODELS[check_collection(collection)]
        row = None
        pk = _parse_id(record_id)
        if pk is not None:
            query = self._session.query(model).filter_by(id=pk)
            if lock:
                query = lock_for_update(query)
            row = query.first()
        ensure_owned(row.owner_id if row is not None else None, owner_id, LABELS[collection])
        return row

    def get(self, collection: str, record_id: str, owner_id: str, *, lock: bool = False) -> dict:
        return self._row(collection, record_id, owner_id, lock=lock).to_dict()

    def insert(self, collection: str, owner_id: str, fields: dict) -> dict:
        model = MODELS[check_collection(collection)]
        row = model(**_clean_fields(fields))
        row.owner_id = owner_id
        self._session.add(row)
        self._session.flush()
        return row.to_dict()

    def update(self, collection: str, record_id: str, owner_id: str, patch: dict) -> dict:
        row = self._row(collection, record_id, owner_id, lock=True)
        for key, value in _clean_fields(patch).items():
            setattr(row, key, value)
        self._session.flush()
        return row.to_dict()

    def delete(self, collection: str, record_id: str, owner_id: str) -> None:
        row = self._row(collection, record_id, owner_id, lock=True)
        self._session.delete(row)
        self._session.flush()


class SqlEntityStore(EntityStore):
    """
    Entity Store on the application database.

    Transactions:
    - SQLite: BEGIN IMMEDIATE takes the database write lock up front, so two
      sale transactions against the same product run one after the other.
    - Other databases: SELECT ... FOR UPDATE on the product row plus the
      version_id optimistic lock.
    Lock timeouts, deadlocks and stale versions are retried with
    exponential backoff; exhaustion surfaces as TransactionFailedError.
    """

    backend_name = "sql"
    unit_class = SqlUnitOfWork

    def __init__(self, attempts: int = 3, backoff_base: float = 0.1):
        self.attempts = attempts
        self.backoff_base = backoff_base

    def get(self, collection: str, record_id: str, owner_id: str) -> dict:
        return self.unit_class(db.session).get(collection, record_id, owner_id)

    def list(self, collection: str, owner_id: str) -> list[dict]:
        model = MODELS[check_collection(collection)]
        rows = (
            db.session.query(model)
            .filter_by(owner_id=owner_id)
            .order_by(model.id.asc())
            .all()
        )
        return [row.to_dict() for row in rows]

    def run_in_transaction(self, func):
        def _op():
            if db.engine.dialect.name == "sqlite":
                db.session.execute(text("BEGIN IMMEDIATE"))
            result = func(self.unit_class(db.session))
            db.session.commit()
            return result

        try:
            return run_with_retry(_op, attempts=self.attempts, backoff_base=self.backoff_base)
        except ServiceError:
            db.session.rollback()
            raise
        except TRANSIENT_ERRORS as exc:
            # run_with_retry already rolled back
            logger.error("Store transaction failed after %s attempts: %s", self.attempts, exc)
            raise TransactionFailedError() from exc
        except Exception as exc:
            # Driver errors included: the writes the unit already flushed are discarded
            db.session.rollback()
            logger.exception("Store transaction failed")
            raise TransactionFailedError() from exc

    def ping(self) -> bool:
        try:
            db.session.execute(text("SELECT 1"))
            db.session.commit()
            return True
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Store ping failed")
            return False
