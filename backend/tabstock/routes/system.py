# backend/tabstock/routes/system.py
"""System health endpoint (no auth)."""

import time
from flask import Blueprint, jsonify, current_app
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__)


@system_bp.get("/api/health")
def health_route():
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
    except Exception:
        current_app.logger.exception("Database health check failed")
        return jsonify({"status": "unhealthy", "error": "Database error"}), 503

    elapsed_ms = (time.time() - start_time) * 1000
    return jsonify({"status": "ok", "latency_ms": round(elapsed_ms, 2)}), 200
