# backend/frontdesk/routes/system.py
"""
System health and version endpoints.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Room, Stay
from frontdesk.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        room_count = db.session.query(Room).count()
        open_stays = db.session.query(Stay).filter(Stay.is_checked_out.is_(False)).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "rooms": room_count,
                "open_stays": open_stays,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    http_status = 200 if database_health["status"] == "healthy" else 503

    response = {
        "status": database_health["status"],
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {
            "database": database_health,
        }
    }

    return response, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment information."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
