from __future__ import annotations

import sqlite3
from pathlib import Path

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

# Background ingestion writes while API requests read.
BUSY_TIMEOUT_SECONDS = 30.0


def connect(db_path: Path, rows: bool = False) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT_SECONDS)
    conn.execute("PRAGMA foreign_keys = ON;")
    if rows:
        conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path, schema_path: Path = SCHEMA_PATH) -> None:
    """Create the schema if missing; safe to call on an existing database."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with connect(db_path) as conn:
        conn.executescript(schema_path.read_text(encoding="utf-8"))
        conn.execute("PRAGMA journal_mode = WAL;")
