"""Plain functions behind the CLI; each opens the store and returns printable lines."""
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional

from analytics.config import load_settings
from analytics.models import Severity, iso
from analytics.service import TimelineAnalytics
from cli.ingest import IngestResult, ingest_file
from cli.store import SqliteEventStore
from cli.utils import parse_ts

EXPORT_FORMATS = ("csv", "json")


def open_store(db_path: Optional[Path] = None) -> SqliteEventStore:
    store = SqliteEventStore(db_path)
    if not store.db_path.exists():
        raise FileNotFoundError(f"Database not initialized: {store.db_path}. Run init-db first.")
    return store


def analytics_for(db_path: Optional[Path] = None, settings_path: Optional[Path] = None) -> TimelineAnalytics:
    return TimelineAnalytics(open_store(db_path), load_settings(settings_path))


def optional_ts(value: Optional[str]) -> Optional[datetime]:
    return parse_ts(value) if value else None


def init_db(db_path: Optional[Path] = None) -> Path:
    store = SqliteEventStore(db_path)
    store.init()
    return store.db_path


def ingest(path: Path, db_path: Optional[Path] = None) -> IngestResult:
    return ingest_file(open_store(db_path), path)


def print_ingest_report(result: IngestResult, verbose: bool = False) -> List[str]:
    lines = [
        f"Source: {result.source}",
        f"Lines read: {result.total_lines}",
        f"Events ingested: {result.events_ingested}",
    ]
    if result.events_skipped:
        lines.append(f"Skipped: {result.events_skipped}")
        shown = result.errors if verbose else result.errors[:5]
        for err in shown:
            lines.append(f"  line {err['line']}: {err['error']}")
        if not verbose and len(result.errors) > 5:
            lines.append(f"  ... {len(result.errors) - 5} more (use --verbose)")
    return lines


def to_json_lines(payload: Any) -> List[str]:
    return json.dumps(payload, indent=2, default=str).splitlines()


def gaps(
    start: Optional[str],
    end: Optional[str],
    min_gap_minutes: int = 0,
    severity: Optional[str] = None,
    limit: Optional[int] = None,
    db_path: Optional[Path] = None,
) -> List[str]:
    found = analytics_for(db_path).find_gaps(
        optional_ts(start),
        optional_ts(end),
        min_gap_minutes,
        Severity(severity) if severity else None,
        limit,
    )
    if not found:
        return ["No temporal gaps found."]
    return [
        f"{g.severity.value:>8}  {g.duration_minutes:>6} min  "
        f"{g.preceding.name} -> {g.succeeding.name}  ({iso(g.start)} .. {iso(g.end)})"
        for g in found
    ]


def largest_gap(start: Optional[str], end: Optional[str], db_path: Optional[Path] = None) -> List[str]:
    gap = analytics_for(db_path).largest_gap(optional_ts(start), optional_ts(end))
    if gap is None:
        return ["No temporal gaps found in the specified time range."]
    return to_json_lines(gap.to_dict())


def overlaps(start: str, end: str, db_path: Optional[Path] = None) -> List[str]:
    pairs = analytics_for(db_path).find_overlaps(parse_ts(start), parse_ts(end))
    if not pairs:
        return ["No overlapping events."]
    return [f"{p.overlap_minutes:>6} min  {p.first.name} <> {p.second.name}" for p in pairs]


def simulate_gap(event_id: str, new_start: str, new_end: str, db_path: Optional[Path] = None) -> List[str]:
    simulation = analytics_for(db_path).simulate_gap(event_id, parse_ts(new_start), parse_ts(new_end))
    return to_json_lines(simulation.to_dict())


def path(source_id: str, target_id: str, hierarchy: bool = False, db_path: Optional[Path] = None) -> List[str]:
    analytics = analytics_for(db_path)
    if hierarchy:
        result = analytics.shortest_hierarchy_path(source_id, target_id)
    else:
        result = analytics.shortest_precedence_path(source_id, target_id)
    if not result.found:
        return [f"No {result.kind} path found from {source_id} to {target_id}."]
    lines = [f"{step.event.id}  {step.event.name}  ({step.duration_minutes} min)" for step in result.steps]
    lines.append(f"Total duration: {result.total_duration_minutes} min")
    return lines


def influence(event_id: str, max_depth: Optional[int] = None, db_path: Optional[Path] = None) -> List[str]:
    result, pattern, recommendations = analytics_for(db_path).analyze_influence(event_id, max_depth)
    lines = [f"{r.score:.4f}  depth {r.depth}  {r.event.id}  {r.event.name}" for r in result.records]
    lines.append(f"Total influence: {result.total_influence:.4f}")
    lines.append(f"Variance: {pattern.influence_variance:.4f}")
    lines.extend(f"[{r.priority}] {r.message}" for r in recommendations)
    return lines


def global_influence(db_path: Optional[Path] = None) -> List[str]:
    return to_json_lines(analytics_for(db_path).global_influence_analysis().to_dict())


def timeline(root_id: str, db_path: Optional[Path] = None) -> List[str]:
    tree = analytics_for(db_path).timeline_tree(root_id)
    return list(_render_tree(tree, 0))


def _render_tree(node: dict, level: int) -> Iterable[str]:
    yield f"{'  ' * level}{node['event_name']}  [{node['start_date']} .. {node['end_date']}]"
    for child in node["children"]:
        yield from _render_tree(child, level + 1)


def export_timeline(fmt: str, output_path: Optional[Path], db_path: Optional[Path] = None) -> Path:
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format {fmt!r}; use one of {', '.join(EXPORT_FORMATS)}")
    store = open_store(db_path)
    if output_path is None:
        export_dir = store.db_path.parent / "exports"
        export_dir.mkdir(parents=True, exist_ok=True)
        output_path = export_dir / f"timeline.{fmt}"

    df = store.to_dataframe()
    if fmt == "json":
        df.to_json(output_path, orient="records", indent=2)
    else:
        df.to_csv(output_path, index=False)
    return output_path
