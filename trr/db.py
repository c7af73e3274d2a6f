from __future__ import annotations

import os
import sqlite3
from datetime import datetime
from typing import Any

from .settings import settings


SCHEMA = """
CREATE TABLE IF NOT EXISTS events (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  level TEXT NOT NULL,
  rollout TEXT,
  ingress TEXT,
  reason TEXT,
  message TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
"""

_initialized: set[str] = set()


def utc_now() -> str:
    return datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")


def _resolve_db_path() -> str:
    """Return a file path usable by sqlite.

    A bind-mounted path that did not exist on the host shows up as a
    directory inside the container; in that case the DB file goes inside it.
    """

    p = os.path.abspath(settings.db_path)

    if os.path.isdir(p):
        p = os.path.join(p, "trr.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


def connect() -> sqlite3.Connection:
    path = _resolve_db_path()
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if path not in _initialized:
        conn.executescript(SCHEMA)
        _initialized.add(path)
    return conn


def init_db() -> None:
    """Create tables if they do not exist."""
    with connect() as conn:
        conn.executescript(SCHEMA)


def log_event(
    level: str,
    message: str,
    rollout: str | None = None,
    ingress: str | None = None,
    reason: str | None = None,
) -> None:
    level = level.upper()
    if level == "DEBUG" and not settings.log_debug:
        return
    with connect() as conn:
        conn.execute(
            "INSERT INTO events (ts, level, rollout, ingress, reason, message) VALUES (?, ?, ?, ?, ?, ?)",
            (utc_now(), level, rollout, ingress, reason, message),
        )


def latest_events(limit: int = 100, rollout: str | None = None) -> list[dict[str, Any]]:
    with connect() as conn:
        if rollout:
            rows = conn.execute(
                "SELECT * FROM events WHERE rollout=? ORDER BY id DESC LIMIT ?",
                (rollout, limit),
            ).fetchall()
        else:
            rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [dict(r) for r in rows]
