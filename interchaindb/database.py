"""Connections to the SQLite block database."""

from __future__ import annotations

import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

MEMORY_DATABASE = ":memory:"

_RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def connect_db(database_path: str | os.PathLike[str]) -> sqlite3.Connection:
    """Open the SQLite database at ``database_path`` and check that it answers.

    Missing parent directories are created. Pass ``":memory:"`` for an
    in-memory database. The connection runs in autocommit mode; writers
    open explicit transactions themselves.
    """
    path = os.fspath(database_path)
    if path != MEMORY_DATABASE:
        Path(path).parent.mkdir(mode=0o755, parents=True, exist_ok=True)

    try:
        db = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
    except sqlite3.Error as exc:
        exc.add_note(f"open db {path}")
        raise

    try:
        db.execute("SELECT 1").fetchone()
    except sqlite3.Error as exc:
        db.close()
        exc.add_note(f"ping db {path}")
        raise
    return db


def now_rfc3339() -> str:
    """Return the current UTC time as an RFC 3339 string with second precision."""
    return datetime.now(timezone.utc).strftime(_RFC3339_FORMAT)