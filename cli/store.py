"""SQLite-backed event store; the snapshot provider used by the API and CLI."""
from __future__ import annotations

import json
import logging
import os
import sqlite3
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from analytics.errors import InvalidInterval, NotFound
from analytics.models import Event
from analytics.snapshot import SnapshotProvider
from cli.db import connect, init_db
from cli.utils import compact_json, from_storage_ts, now_utc_iso, to_storage_ts

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[1]
DB_PATH_ENV = "TIMELINE_DB_PATH"

SORT_COLUMNS = {"start_date": "start_ts", "event_name": "event_name"}
LOOKUP_CHUNK = 500


def default_db_path() -> Path:
    env_path = os.environ.get(DB_PATH_ENV)
    return Path(env_path) if env_path else ROOT_DIR / "data" / "events.sqlite"


def _row_to_event(row: sqlite3.Row) -> Event:
    return Event(
        id=row["event_id"],
        name=row["event_name"],
        start=from_storage_ts(row["start_ts"]),
        end=from_storage_ts(row["end_ts"]),
        parent_id=row["parent_event_id"],
        description=row["description"] or "",
        metadata=json.loads(row["metadata_json"] or "{}"),
    )


class SqliteEventStore(SnapshotProvider):
    """Events persisted in a single SQLite file."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path is not None else default_db_path()

    def init(self) -> None:
        init_db(self.db_path)

    def _query(self, sql: str, params: Tuple = ()) -> List[sqlite3.Row]:
        with connect(self.db_path, rows=True) as conn:
            return conn.execute(sql, params).fetchall()

    def _query_events(self, sql: str, params: Tuple = ()) -> List[Event]:
        return [_row_to_event(row) for row in self._query(sql, params)]

    # Snapshot provider

    def get_all_events(self) -> List[Event]:
        return self._query_events("SELECT * FROM events ORDER BY start_ts ASC, rowid ASC")

    def get_event(self, event_id: str) -> Optional[Event]:
        events = self._query_events("SELECT * FROM events WHERE event_id = ?", (event_id,))
        return events[0] if events else None

    def get_child_events(self, parent_id: str) -> List[Event]:
        return self._query_events(
            "SELECT * FROM events WHERE parent_event_id = ? ORDER BY start_ts ASC, rowid ASC",
            (parent_id,),
        )

    def get_root_events(self) -> List[Event]:
        return self._query_events(
            "SELECT * FROM events WHERE parent_event_id IS NULL ORDER BY start_ts ASC, rowid ASC"
        )

    def count(self) -> int:
        return int(self._query("SELECT COUNT(*) AS cnt FROM events")[0]["cnt"])

    # Mutation

    def add_event(self, event: Event) -> Event:
        """Insert one event.

        Raises:
            ValueError: if an event with the same id already exists.
        """
        added, failed = self.add_events([event])
        if failed:
            raise ValueError(failed[0]["error"])
        return added[0]

    def add_events(self, events: Iterable[Event]) -> Tuple[List[Event], List[Dict[str, Any]]]:
        """Insert a batch in one transaction, skipping and recording duplicates.

        Parents may appear later in the batch than their children. Parent
        ids that still do not resolve once the batch is in are cleared with
        a warning.

        Returns:
            Tuple of (stored events, failures as {"event_id", "error"} dicts)
        """
        inserted: List[str] = []
        failed: List[Dict[str, Any]] = []
        with connect(self.db_path) as conn:
            for event in events:
                start_ts, end_ts = to_storage_ts(event.start), to_storage_ts(event.end)
                # Fixed-width UTC text, so string order is time order.
                if end_ts <= start_ts:
                    failed.append({"event_id": event.id, "error": f"Event {event.id} has end <= start once stored"})
                    continue
                try:
                    conn.execute(
                        """
                        INSERT INTO events(
                          event_id, event_name, description, start_ts, end_ts,
                          parent_event_id, metadata_json, created_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            event.id,
                            event.name,
                            event.description,
                            start_ts,
                            end_ts,
                            event.parent_id,
                            compact_json(dict(event.metadata)),
                            now_utc_iso(),
                        ),
                    )
                    inserted.append(event.id)
                except sqlite3.IntegrityError:
                    failed.append({"event_id": event.id, "error": f"Event {event.id} already exists"})
            self._clear_dangling_parents(conn)

        stored: Dict[str, Event] = {}
        for offset in range(0, len(inserted), LOOKUP_CHUNK):
            chunk = inserted[offset:offset + LOOKUP_CHUNK]
            placeholders = ",".join("?" * len(chunk))
            for event in self._query_events(f"SELECT * FROM events WHERE event_id IN ({placeholders})", tuple(chunk)):
                stored[event.id] = event
        return [stored[event_id] for event_id in inserted], failed

    @staticmethod
    def _clear_dangling_parents(conn: sqlite3.Connection) -> None:
        dangling = conn.execute(
            """
            SELECT event_id, parent_event_id FROM events
            WHERE parent_event_id IS NOT NULL
              AND parent_event_id NOT IN (SELECT event_id FROM events)
            """
        ).fetchall()
        for event_id, parent_id in dangling:
            logger.warning("Parent event %s of %s does not exist. Setting parent to null.", parent_id, event_id)
            conn.execute("UPDATE events SET parent_event_id = NULL WHERE event_id = ?", (event_id,))

    def update_event(self, event_id: str, **changes: Any) -> Event:
        """Apply field changes (name, start, end, parent_id, description, metadata).

        Raises:
            NotFound: if the event does not exist.
            InvalidInterval: if the change leaves end <= start.
        """
        existing = self.get_event(event_id)
        if existing is None:
            raise NotFound(event_id)
        updated = replace(existing, **changes)
        start_ts, end_ts = to_storage_ts(updated.start), to_storage_ts(updated.end)
        if end_ts <= start_ts:
            raise InvalidInterval(f"Event {event_id} has end <= start once stored")
        with connect(self.db_path) as conn:
            conn.execute(
                """
                UPDATE events
                SET event_name = ?, description = ?, start_ts = ?, end_ts = ?,
                    parent_event_id = ?, metadata_json = ?
                WHERE event_id = ?
                """,
                (
                    updated.name,
                    updated.description,
                    start_ts,
                    end_ts,
                    updated.parent_id,
                    compact_json(dict(updated.metadata)),
                    event_id,
                ),
            )
            self._clear_dangling_parents(conn)
        return self.get_event(event_id)

    def delete_event(self, event_id: str) -> None:
        """Delete an event; its children become roots.

        Raises:
            NotFound: if the event does not exist.
        """
        with connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM events WHERE event_id = ?", (event_id,))
            if cursor.rowcount == 0:
                raise NotFound(event_id)

    # Queries

    def search(
        self,
        name: Optional[str] = None,
        start_after: Optional[datetime] = None,
        end_before: Optional[datetime] = None,
        sort_by: str = "start_date",
        order: str = "asc",
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Event], int]:
        """Filter events by name fragment and date bounds, then paginate.

        Returns:
            Tuple of (events on the requested page, total matching events)
        """
        where_clause = "1 = 1"
        params: List[Any] = []
        if name:
            where_clause += " AND LOWER(event_name) LIKE ?"
            params.append(f"%{name.lower()}%")
        if start_after is not None:
            where_clause += " AND start_ts >= ?"
            params.append(to_storage_ts(start_after))
        if end_before is not None:
            where_clause += " AND end_ts <= ?"
            params.append(to_storage_ts(end_before))

        total = int(self._query(f"SELECT COUNT(*) AS cnt FROM events WHERE {where_clause}", tuple(params))[0]["cnt"])

        column = SORT_COLUMNS.get(sort_by, "start_ts")
        direction = "DESC" if order == "desc" else "ASC"
        offset = (page - 1) * limit
        events = self._query_events(
            f"""
            SELECT * FROM events
            WHERE {where_clause}
            ORDER BY {column} {direction}, rowid ASC
            LIMIT ? OFFSET ?
            """,
            tuple(params + [limit, offset]),
        )
        return events, total

    def to_dataframe(self) -> pd.DataFrame:
        with connect(self.db_path) as conn:
            df = pd.read_sql_query(
                """
                SELECT event_id, event_name, description, start_ts AS start_date,
                       end_ts AS end_date, parent_event_id, metadata_json
                FROM events
                ORDER BY start_ts ASC, rowid ASC
                """,
                conn,
            )
        if df.empty:
            return df
        starts = pd.to_datetime(df["start_date"], utc=True)
        ends = pd.to_datetime(df["end_date"], utc=True)
        df["duration_minutes"] = ((ends - starts).dt.total_seconds() / 60).round().astype(int)
        return df
