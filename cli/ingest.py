"""File ingestion: CSV, NDJSON and pipe-separated event exports."""
from __future__ import annotations

import csv
import json
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from analytics.errors import InvalidInterval
from analytics.models import Event
from cli.store import SqliteEventStore
from cli.utils import parse_ts

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["event_name", "start_date", "end_date"]

PIPE_FIELDS = ["event_id", "event_name", "start_date", "end_date", "parent_id", "description"]

FIELD_ALIASES: Dict[str, str] = {
    "eventid": "event_id",
    "id": "event_id",
    "eventname": "event_name",
    "name": "event_name",
    "startdate": "start_date",
    "start": "start_date",
    "enddate": "end_date",
    "end": "end_date",
    "parentid": "parent_id",
    "parent_event_id": "parent_id",
    "parenteventid": "parent_id",
}

NULL_MARKERS = {"", "null", "none"}

PROGRESS_EVERY = 500


@dataclass
class IngestResult:
    """Outcome of one file ingestion."""
    source: str
    events_ingested: int = 0
    events_skipped: int = 0
    total_lines: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def record_error(self, line_no: int, message: str) -> None:
        self.events_skipped += 1
        self.errors.append({"line": line_no, "error": message})


def _parse_ndjson(path: Path) -> Iterator[Tuple[int, Dict[str, Any]]]:
    with path.open("r", encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                yield line_no, {"__error__": f"Invalid JSON: {exc.msg}"}
                continue
            if not isinstance(payload, dict):
                yield line_no, {"__error__": f"Expected a JSON object, got {type(payload).__name__}"}
                continue
            yield line_no, payload


def _parse_csv(path: Path) -> Iterator[Tuple[int, Dict[str, Any]]]:
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error as exc:
                yield reader.line_num, {"__error__": f"Invalid CSV row: {exc}"}
                continue
            yield reader.line_num, row


def _parse_pipe(path: Path) -> Iterator[Tuple[int, Dict[str, Any]]]:
    with path.open("r", encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            parts = line.split("|")
            if len(parts) < len(PIPE_FIELDS):
                yield line_no, {
                    "__error__": f"Missing fields. Expected {len(PIPE_FIELDS)} fields, got {len(parts)}"
                }
                continue
            # Descriptions may themselves contain pipes.
            head = parts[:len(PIPE_FIELDS) - 1]
            tail = "|".join(parts[len(PIPE_FIELDS) - 1:])
            yield line_no, dict(zip(PIPE_FIELDS, head + [tail]))


def iter_rows(path: Path) -> Iterator[Tuple[int, Dict[str, Any]]]:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return _parse_csv(path)
    if suffix in (".ndjson", ".jsonl", ".json"):
        return _parse_ndjson(path)
    return _parse_pipe(path)


def normalize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Map source field names onto canonical ones and blank out null markers."""
    normalized: Dict[str, Any] = {}
    for key, value in row.items():
        if key is None:
            continue
        canonical = key.strip().lower().replace("-", "_").replace(" ", "_")
        canonical = FIELD_ALIASES.get(canonical.replace("_", ""), FIELD_ALIASES.get(canonical, canonical))
        if isinstance(value, str):
            value = value.strip()
            if value.lower() in NULL_MARKERS:
                value = None
        normalized[canonical] = value
    return normalized


def prepare_event(row: Dict[str, Any], source: str) -> Event:
    """Build a validated event from one parsed row.

    Raises:
        ValueError: on missing fields or unparseable timestamps.
        InvalidInterval: when the end is not after the start.
    """
    if "__error__" in row:
        raise ValueError(row["__error__"])
    normalized = normalize_row(row)
    missing = [name for name in REQUIRED_FIELDS if not normalized.get(name)]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")

    try:
        start = parse_ts(normalized["start_date"], assume_utc=True)
        end = parse_ts(normalized["end_date"], assume_utc=True)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid date format: {exc}") from exc

    metadata = normalized.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    metadata = {**metadata, "source": source}
    parent_id = normalized.get("parent_id")

    return Event(
        id=str(normalized.get("event_id") or uuid.uuid4()),
        name=str(normalized["event_name"]),
        start=start,
        end=end,
        parent_id=str(parent_id) if parent_id is not None else None,
        description=str(normalized.get("description") or ""),
        metadata=metadata,
    )


def ingest_file(
    store: SqliteEventStore,
    path: Path,
    progress_callback: Optional[Callable[[IngestResult], None]] = None,
) -> IngestResult:
    """Ingest every valid row of ``path`` into ``store``.

    Malformed rows are skipped and recorded on the result; they never
    abort the file.

    Args:
        store: Destination store (must be initialized)
        path: CSV, NDJSON or pipe-separated file
        progress_callback: Optional callback invoked as rows are parsed and once stored

    Returns:
        IngestResult with counts and per-line errors
    """
    result = IngestResult(source=path.name)
    parsed: List[Tuple[int, Event]] = []

    for line_no, row in iter_rows(path):
        result.total_lines += 1
        try:
            parsed.append((line_no, prepare_event(row, path.name)))
        except (ValueError, InvalidInterval) as exc:
            logger.warning("Skipping line %d of %s: %s", line_no, path.name, exc)
            result.record_error(line_no, str(exc))
        if progress_callback and result.total_lines % PROGRESS_EVERY == 0:
            progress_callback(result)

    # One batch so children may precede their parents in the file.
    line_by_id = {event.id: line_no for line_no, event in parsed}
    added, failed = store.add_events(event for _, event in parsed)
    result.events_ingested = len(added)
    for failure in failed:
        result.record_error(line_by_id.get(failure["event_id"], 0), failure["error"])
    if progress_callback:
        progress_callback(result)

    logger.info(
        "Ingested %d events from %s (%d skipped)",
        result.events_ingested, path.name, result.events_skipped,
    )
    return result
