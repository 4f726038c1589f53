# Overview: Retry and locking helpers for store transactions.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


# Failures worth retrying: locks/deadlocks/timeouts and optimistic-lock conflicts
TRANSIENT_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    On SQLite the write lock comes from BEGIN IMMEDIATE instead.

    populate_existing() refreshes rows already in the identity map so the
    locked read never sees a stale stock value.
    """
    return query.with_for_update().populate_existing()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). The session is rolled back before each
    retry; the last error is re-raised once attempts are exhausted.
    """
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return func()
        except TRANSIENT_ERRORS:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
