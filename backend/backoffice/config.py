# backend/backoffice/config.py
from __future__ import annotations
import os
from decimal import Decimal


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/backoffice.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///backoffice.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Money policy
    TAX_RATE = Decimal(os.environ.get("TAX_RATE", "0.08"))
    LATE_FEE_RATE = Decimal(os.environ.get("LATE_FEE_RATE", "0.10"))

    # Rentals
    RENTAL_PERIOD_DAYS = int(os.environ.get("RENTAL_PERIOD_DAYS", "14"))

    # Inventory report thresholds
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))
    CRITICAL_STOCK_THRESHOLD = int(os.environ.get("CRITICAL_STOCK_THRESHOLD", "5"))

    # Absolute bearer-token lifetime
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "8"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Register UI dev servers allowed to call the API
    CORS_ORIGINS = tuple(
        o.strip()
        for o in os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
        if o.strip()
    )
