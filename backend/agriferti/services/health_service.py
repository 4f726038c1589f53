# Overview: Background liveness poll of the entity store.

from __future__ import annotations

import logging
import threading
import time

from ..extensions import db
from agriferti.time_utils import to_utc_z, utcnow


logger = logging.getLogger(__name__)

EXTENSION_KEY = "agriferti.liveness_monitor"


class LivenessMonitor:
    """
    Polls store.ping() every `interval` seconds on a daemon thread.

    Advisory only: the result is reported by /api/health and never gates
    requests. The poll runs outside the store's transaction lock (ping is a
    plain read), so it cannot delay a sale.
    """

    def __init__(self, app, store, interval: float = 30.0):
        self.app = app
        self.store = store
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.last_status: str | None = None
        self.last_checked_at: str | None = None
        self.last_latency_ms: float | None = None

    def poll_once(self) -> bool:
        start = time.time()
        with self.app.app_context():
            try:
                ok = self.store.ping()
            finally:
                db.session.remove()
        self.last_latency_ms = round((time.time() - start) * 1000, 2)
        self.last_checked_at = to_utc_z(utcnow())
        status = "healthy" if ok else "unhealthy"
        if status != self.last_status:
            log = logger.info if ok else logger.warning
            log("Store %s is %s", self.store.backend_name, status)
        self.last_status = status
        return ok

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("Liveness poll failed")
                self.last_status = "unhealthy"
            self._stop.wait(self.interval)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="store-liveness", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)

    def snapshot(self) -> dict:
        return {
            "status": self.last_status or "unknown",
            "checked_at": self.last_checked_at,
            "latency_ms": self.last_latency_ms,
            "interval_seconds": self.interval,
        }
