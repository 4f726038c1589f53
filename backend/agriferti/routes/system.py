# Overview: System banner and health endpoints.

"""
System health endpoints.

GET /            plain-text banner (the frontend's cloud/offline probe)
GET /api/health  store ping plus the background liveness monitor's last poll
"""

import time
from flask import Blueprint, current_app, jsonify

from ..services.entity_store import get_store
from ..services.health_service import EXTENSION_KEY as MONITOR_KEY


system_bp = Blueprint("system", __name__)


@system_bp.get("/")
def banner():
    return "AgriFerti Backend is Running", 200, {"Content-Type": "text/plain; charset=utf-8"}


def check_store_health() -> dict:
    store = get_store()
    start_time = time.time()
    ok = store.ping()
    elapsed_ms = (time.time() - start_time) * 1000
    return {
        "backend": store.backend_name,
        "status": "healthy" if ok else "unhealthy",
        "latency_ms": round(elapsed_ms, 2),
    }


@system_bp.get("/api/health")
def health():
    store_health = check_store_health()
    monitor = current_app.extensions.get(MONITOR_KEY)

    body = {
        "status": store_health["status"],
        "store": store_health,
        "monitor": monitor.snapshot() if monitor else None,
    }
    return jsonify(body), 200 if store_health["status"] == "healthy" else 503
