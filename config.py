"""
config.py
Environment-driven settings and logging setup.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

DEFAULT_API_URL = "https://api.example.com"
DEFAULT_TIMEOUT = 10.0


def get_api_base_url() -> str:
    """Base URL of the member backend (no trailing slash)."""
    return os.getenv("MEMBER_PORTAL_API_URL", DEFAULT_API_URL).rstrip("/")


def get_db_file() -> Path:
    """
    Location of the SQLite file that holds the persisted session.
    Defaults to member_portal.db next to this module.
    """
    path = os.getenv("MEMBER_PORTAL_DB")
    if path:
        return Path(path)
    return Path(__file__).with_name("member_portal.db")


def get_timeout() -> float:
    raw = os.getenv("MEMBER_PORTAL_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT


def configure_logging() -> None:
    level_name = os.getenv("MEMBER_PORTAL_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
