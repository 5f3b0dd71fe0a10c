# backend/backoffice/routes/system.py
"""
System health endpoint.

Reports database reachability and row counts for the tables the register
depends on, plus the active money policy.
"""

import time
from flask import Blueprint, current_app, jsonify
from ..extensions import db
from ..models import Coupon, Employee, RentalAsset, StockItem
from ..money import money_str
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        details = {
            "items": db.session.query(StockItem).count(),
            "rental_assets": db.session.query(RentalAsset).count(),
            "coupons": db.session.query(Coupon).count(),
            "employees": db.session.query(Employee).count(),
        }
        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "details": details,
        }
    except Exception:
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    return jsonify({
        "status": "ok" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "database": database,
        "policy": {
            "tax_rate": money_str(current_app.config["TAX_RATE"]),
            "late_fee_rate": money_str(current_app.config["LATE_FEE_RATE"]),
            "rental_period_days": current_app.config["RENTAL_PERIOD_DAYS"],
        },
    }), (200 if healthy else 503)
