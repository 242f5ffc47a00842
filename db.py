"""
db.py
SQLite-backed session storage: the persisted auth token and user snapshot.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager

import config
from models import User

logger = logging.getLogger(__name__)

DB_FILE = config.get_db_file()

TOKEN_KEY = "member_portal_token"
USER_KEY = "member_portal_user"


@contextmanager
def get_conn():
    conn = sqlite3.connect(DB_FILE, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def execute(sql: str, params: tuple = ()) -> int:
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.lastrowid


def fetch_one(sql: str, params: tuple = ()):
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.fetchone()


def _create_tables() -> None:
    execute(
        """
        CREATE TABLE IF NOT EXISTS session_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """
    )


def init_db() -> None:
    """Create the session table if it does not exist yet."""
    _create_tables()


def _get_item(key: str) -> str | None:
    row = fetch_one("SELECT value FROM session_store WHERE key = ?", (key,))
    if row:
        return str(row["value"])
    return None


def _set_item(key: str, value: str) -> None:
    execute(
        """
        INSERT INTO session_store(key, value) VALUES(?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """,
        (key, value),
    )


def _remove_item(key: str) -> None:
    execute("DELETE FROM session_store WHERE key = ?", (key,))


# ---------- Token ----------

def set_token(token: str) -> None:
    _set_item(TOKEN_KEY, token)


def get_token() -> str | None:
    return _get_item(TOKEN_KEY)


def remove_token() -> None:
    _remove_item(TOKEN_KEY)


# ---------- User snapshot ----------

def set_user(user: User) -> None:
    _set_item(USER_KEY, json.dumps(user.to_dict()))


def get_user() -> User | None:
    """
    Return the cached user, or None.
    A corrupt snapshot is logged and treated as absent, never raised.
    """
    raw = _get_item(USER_KEY)
    if not raw:
        return None
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("user snapshot is not an object")
        return User.from_dict(data)
    except (ValueError, TypeError) as exc:
        logger.warning("Failed to parse user data: %s", exc)
        return None


def remove_user() -> None:
    _remove_item(USER_KEY)


def clear_session() -> None:
    # two independent writes, not a transaction
    remove_token()
    remove_user()
