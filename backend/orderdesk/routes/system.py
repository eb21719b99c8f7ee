# backend/orderdesk/routes/system.py
"""System health endpoint (public)."""

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db
from orderdesk.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> str:
    try:
        db.session.execute(text("SELECT 1"))
        return "ok"
    except Exception:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return "error"


@system_bp.get("/api/health")
def health():
    db_status = check_database_health()
    return jsonify({
        "status": "ok" if db_status == "ok" else "degraded",
        "db": db_status,
        "nowIso": to_utc_z(utcnow()),
    }), 200 if db_status == "ok" else 503
