# backend/retailpos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/retailpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///retailpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Flat sales tax applied to (subtotal - discount). Kept as a string so it
    # parses straight into Decimal.
    TAX_RATE = os.environ.get("TAX_RATE", "0.10")

    # Calendar day boundaries for daily analytics are computed in this zone
    STORE_TIMEZONE = os.environ.get("STORE_TIMEZONE", "UTC")

    SALES_LIST_DEFAULT_LIMIT = int(os.environ.get("SALES_LIST_DEFAULT_LIMIT", "50"))

    DEFAULT_ADMIN_USERNAME = os.environ.get("DEFAULT_ADMIN_USERNAME", "admin")

    # Frontend dev servers allowed to call the API from the browser
    CORS_ALLOWED_ORIGINS = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:4173",
        "http://127.0.0.1:4173",
    }
