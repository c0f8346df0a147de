"""FastAPI dependency providers backed by ``app.state``."""
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, Request

from analytics.errors import AnalysisTimeout, InvalidInterval, InvalidRange, NotFound
from analytics.service import TimelineAnalytics
from api.services.jobs import JobRegistry
from cli.store import SqliteEventStore


def get_store(request: Request) -> SqliteEventStore:
    return request.app.state.store


def get_analytics(request: Request) -> TimelineAnalytics:
    return request.app.state.analytics


def get_jobs(request: Request) -> JobRegistry:
    return request.app.state.jobs


@contextmanager
def analytics_errors() -> Iterator[None]:
    """Translate core failures into HTTP errors."""
    try:
        yield
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except (InvalidInterval, InvalidRange) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except AnalysisTimeout as exc:
        raise HTTPException(status_code=503, detail=str(exc))
