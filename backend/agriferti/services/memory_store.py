# Overview: Ephemeral in-process Entity Store backend (offline demo mode).

from __future__ import annotations

import copy
import logging
import threading
import uuid

from ..errors import ServiceError, TransactionFailedError
from ..time_utils import to_utc_z, utcnow
from .entity_store import COLLECTIONS, LABELS, EntityStore, UnitOfWork, check_collection
from .ownership import SERVER_MANAGED_FIELDS, ensure_owned


logger = logging.getLogger(__name__)


class MemoryUnitOfWork(UnitOfWork):
    """
    Works on a staged copy of the collections. Nothing is visible to other
    callers until MemoryEntityStore swaps the staged copy in.
    """

    def __init__(self, committed: dict[str, dict[str, dict]]):
        # Copy the per-collection dicts; records are replaced, never mutated
        self.staged = {name: dict(records) for name, records in committed.items()}

    def _record(self, collection: str, record_id: str, owner_id: str) -> dict:
        records = self.staged[check_collection(collection)]
        record = records.get(record_id) if isinstance(record_id, str) else None
        ensure_owned(record["owner_id"] if record is not None else None, owner_id, LABELS[collection])
        return record

    def get(self, collection: str, record_id: str, owner_id: str, *, lock: bool = False) -> dict:
        # The whole transaction already holds the store lock
        return copy.deepcopy(self._record(collection, record_id, owner_id))

    def insert(self, collection: str, owner_id: str, fields: dict) -> dict:
        records = self.staged[check_collection(collection)]
        now = to_utc_z(utcnow())
        record = {k: v for k, v in fields.items() if k not in SERVER_MANAGED_FIELDS}
        record["id"] = uuid.uuid4().hex
        record["owner_id"] = owner_id
        record["created_at"] = now
        if collection == "products":
            record["updated_at"] = now
        records[record["id"]] = record
        return copy.deepcopy(record)

    def update(self, collection: str, record_id: str, owner_id: str, patch: dict) -> dict:
        current = self._record(collection, record_id, owner_id)
        updated = dict(current)
        updated.update({k: v for k, v in patch.items() if k not in SERVER_MANAGED_FIELDS})
        if "updated_at" in current:
            updated["updated_at"] = to_utc_z(utcnow())
        self.staged[collection][record_id] = updated
        return copy.deepcopy(updated)

    def delete(self, collection: str, record_id: str, owner_id: str) -> None:
        self._record(collection, record_id, owner_id)
        del self.staged[collection][record_id]


class MemoryEntityStore(EntityStore):
    """
    Entity Store kept in process memory.

    Transactions run one at a time under a re-entrant lock, against a staged
    copy that replaces the committed state only when the callback returns.
    Readers never take the lock: they see whichever committed snapshot is
    current. Data is lost when the process exits.
    """

    backend_name = "memory"
    unit_class = MemoryUnitOfWork

    def __init__(self):
        self._lock = threading.RLock()
        # dicts preserve insertion order, which list() relies on
        self._committed: dict[str, dict[str, dict]] = {name: {} for name in COLLECTIONS}

    def get(self, collection: str, record_id: str, owner_id: str) -> dict:
        records = self._committed[check_collection(collection)]
        record = records.get(record_id) if isinstance(record_id, str) else None
        ensure_owned(record["owner_id"] if record is not None else None, owner_id, LABELS[collection])
        return copy.deepcopy(record)

    def list(self, collection: str, owner_id: str) -> list[dict]:
        records = self._committed[check_collection(collection)]
        return [copy.deepcopy(r) for r in records.values() if r["owner_id"] == owner_id]

    def run_in_transaction(self, func):
        with self._lock:
            unit = self.unit_class(self._committed)
            try:
                result = func(unit)
            except ServiceError:
                raise
            except Exception as exc:
                logger.exception("Store transaction failed")
                raise TransactionFailedError() from exc
            self._committed = unit.staged
            return result

    def ping(self) -> bool:
        return True

    def clear(self) -> None:
        """Drop every record (tests and `flask system reset-db`)."""
        with self._lock:
            self._committed = {name: {} for name in COLLECTIONS}
