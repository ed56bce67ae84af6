# backend/pos_api/config.py
from __future__ import annotations
import os


def _sqlite_engine_options(uri: str) -> dict:
    # Writers queue on the database lock instead of failing immediately
    if not uri.startswith("sqlite"):
        return {}
    timeout = float(os.environ.get("DB_BUSY_TIMEOUT", "30"))
    return {"connect_args": {"timeout": timeout, "check_same_thread": False}}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/pos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pos.sqlite3", #default local location
    )
    SQLALCHEMY_ENGINE_OPTIONS = _sqlite_engine_options(SQLALCHEMY_DATABASE_URI)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Code sequences
    INVOICE_PREFIX = os.environ.get("INVOICE_PREFIX", "INV")
    INVOICE_NUMBER_WIDTH = int(os.environ.get("INVOICE_NUMBER_WIDTH", "6"))
    ITEM_CODE_PREFIX = "ITM"
    ITEM_CODE_WIDTH = 5
    CATEGORY_CODE_PREFIX = "CAT"
    CATEGORY_CODE_WIDTH = 4

    DEFAULT_REORDER_LEVEL = 10
