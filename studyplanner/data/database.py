"""
SQLite database initialization and connection management.

Single responsibility: own the connection, create tables.
All actual queries live in Repository.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Default DB lives at the repo root
DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent.parent / "study_planner.db"

SCHEMA_SQL = """
-- Tasks ---------------------------------------------------------------------
CREATE TABLE IF NOT EXISTS tasks (
    id              TEXT    PRIMARY KEY,
    position        INTEGER NOT NULL,
    text            TEXT    NOT NULL,
    category        TEXT    NOT NULL,
    priority        TEXT    NOT NULL DEFAULT 'medium',
    deadline        TEXT    NOT NULL DEFAULT '',
    completed       INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL,
    completed_at    TEXT    NOT NULL DEFAULT '',
    pomodoro_count  INTEGER NOT NULL DEFAULT 0,
    pomodoro_target INTEGER NOT NULL DEFAULT 1
);

-- Key/value documents (stats snapshot) --------------------------------------
CREATE TABLE IF NOT EXISTS documents (
    key         TEXT    PRIMARY KEY,
    value       TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_tasks_position ON tasks(position);
"""


class Database:
    """Thin wrapper around a SQLite connection."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.conn: Optional[sqlite3.Connection] = None

    # -- lifecycle -----------------------------------------------------------

    def connect(self) -> sqlite3.Connection:
        """Open (or return existing) connection and ensure schema exists."""
        if self.conn is not None:
            return self.conn
        logger.info("Connecting to SQLite at %s", self.db_path)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()
        return self.conn

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("Database connection closed.")

    # -- internal ------------------------------------------------------------

    def _create_tables(self) -> None:
        assert self.conn is not None
        self.conn.executescript(SCHEMA_SQL)
        self.conn.commit()
        logger.info("Database schema ensured.")


def connect_memory() -> sqlite3.Connection:
    """In-memory connection with the schema applied (tests, fallback)."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return conn
