from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_ts(value: str | datetime, assume_utc: bool = False) -> datetime:
    """Parse an ISO-8601 timestamp, requiring an offset unless ``assume_utc``."""
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        if not assume_utc:
            raise ValueError(f"Timestamp {value!r} has no timezone offset")
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_storage_ts(value: datetime) -> str:
    """Fixed-width UTC form so stored timestamps sort as text."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def from_storage_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def compact_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, separators=(",", ":"), sort_keys=True)
