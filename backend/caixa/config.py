# backend/caixa/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/caixa.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///caixa.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Storewide IVA in basis points (1700 = 17%)
    DEFAULT_TAX_RATE_BPS = int(os.environ.get("DEFAULT_TAX_RATE_BPS", "1700"))

    # Invoice number uniqueness probes before accepting a possible collision
    INVOICE_MAX_ATTEMPTS = int(os.environ.get("INVOICE_MAX_ATTEMPTS", "10"))

    # Parked carts are dropped after this many seconds
    HELD_SALE_TTL_SECONDS = int(os.environ.get("HELD_SALE_TTL_SECONDS", str(8 * 60 * 60)))
