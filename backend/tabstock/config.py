# backend/tabstock/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tabstock.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Pre-shared admin credential. Empty means every admin request is refused.
    ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN", "").strip()

    # Month keys are computed in this zone, whatever the caller's zone is
    BILLING_TIMEZONE = os.environ.get("BILLING_TIMEZONE", "Europe/Paris")

    # Retries on lock/deadlock errors only; lost conditional writes are not retried
    RESTOCK_RETRY_ATTEMPTS = int(os.environ.get("RESTOCK_RETRY_ATTEMPTS", "3"))
