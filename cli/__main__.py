import logging
from pathlib import Path
from typing import Optional

import typer

from analytics.errors import AnalyticsError
from cli import commands

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")

app = typer.Typer(add_completion=False)

DB_OPTION = typer.Option(None, "--db", envvar="TIMELINE_DB_PATH", help="SQLite database path")


def _echo(lines) -> None:
    for line in lines:
        typer.echo(line)


def _run(fn, *args, **kwargs) -> None:
    try:
        _echo(fn(*args, **kwargs))
    except (AnalyticsError, ValueError, FileNotFoundError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


@app.command("init-db")
def init_db(db: Optional[Path] = DB_OPTION) -> None:
    path = commands.init_db(db)
    typer.echo(f"Initialized {path}")


@app.command("ingest")
def ingest(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show every skipped line"),
    db: Optional[Path] = DB_OPTION,
) -> None:
    """Ingest a CSV, NDJSON or pipe-separated event file."""
    _run(lambda: commands.print_ingest_report(commands.ingest(file, db), verbose=verbose))


@app.command("gaps")
def gaps(
    start: Optional[str] = typer.Option(None, help="Window start (ISO-8601 with offset)"),
    end: Optional[str] = typer.Option(None, help="Window end (ISO-8601 with offset)"),
    min_gap: int = typer.Option(0, "--min-gap", min=0, help="Minimum gap in minutes"),
    severity: Optional[str] = typer.Option(None, help="low, medium, high or critical"),
    limit: Optional[int] = typer.Option(None, min=1),
    db: Optional[Path] = DB_OPTION,
) -> None:
    """List temporal gaps, largest first."""
    _run(commands.gaps, start, end, min_gap, severity, limit, db_path=db)


@app.command("largest-gap")
def largest_gap(
    start: Optional[str] = typer.Option(None),
    end: Optional[str] = typer.Option(None),
    db: Optional[Path] = DB_OPTION,
) -> None:
    _run(commands.largest_gap, start, end, db_path=db)


@app.command("overlaps")
def overlaps(start: str, end: str, db: Optional[Path] = DB_OPTION) -> None:
    """List overlapping event pairs inside a window."""
    _run(commands.overlaps, start, end, db_path=db)


@app.command("simulate-gap")
def simulate_gap(event_id: str, new_start: str, new_end: str, db: Optional[Path] = DB_OPTION) -> None:
    """Show how gaps change if an event moved to a new interval."""
    _run(commands.simulate_gap, event_id, new_start, new_end, db_path=db)


@app.command("path")
def path(
    source_id: str,
    target_id: str,
    hierarchy: bool = typer.Option(False, "--hierarchy", help="Follow parent/child links instead of precedence"),
    db: Optional[Path] = DB_OPTION,
) -> None:
    """Shortest chain of events from source to target."""
    _run(commands.path, source_id, target_id, hierarchy, db_path=db)


@app.command("influence")
def influence(
    event_id: str,
    max_depth: Optional[int] = typer.Option(None, "--max-depth", min=0),
    db: Optional[Path] = DB_OPTION,
) -> None:
    _run(commands.influence, event_id, max_depth, db_path=db)


@app.command("global-influence")
def global_influence(db: Optional[Path] = DB_OPTION) -> None:
    _run(commands.global_influence, db_path=db)


@app.command("timeline")
def timeline(root_id: str, db: Optional[Path] = DB_OPTION) -> None:
    """Print the event hierarchy under an event."""
    _run(commands.timeline, root_id, db_path=db)


@app.command("export-timeline")
def export_timeline(
    fmt: str = typer.Option("csv", "--format", help="csv or json"),
    output: Optional[Path] = typer.Option(None, dir_okay=False),
    db: Optional[Path] = DB_OPTION,
) -> None:
    """Write every stored event to CSV or JSON."""
    _run(lambda: [f"Exported {commands.export_timeline(fmt, output, db)}"])


if __name__ == "__main__":
    app()
