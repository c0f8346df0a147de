"""Event CRUD, search and statistics endpoints."""
import math
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from analytics import models
from analytics.service import TimelineAnalytics
from api.deps import analytics_errors, get_analytics, get_store
from api.schemas.events import Event, EventCreate, EventsResponse, EventStatistics, EventUpdate
from cli.store import SqliteEventStore

router = APIRouter(prefix="/events", tags=["events"])

# Request field -> Event attribute
UPDATE_FIELDS = {
    "event_name": "name",
    "start_date": "start",
    "end_date": "end",
    "parent_event_id": "parent_id",
    "description": "description",
    "metadata": "metadata",
}


def _page(events: List[models.Event], total: int, page: int, limit: int) -> EventsResponse:
    return EventsResponse(
        events=[Event(**e.to_dict()) for e in events],
        total=total,
        page=page,
        page_size=limit,
        total_pages=math.ceil(total / limit) if total else 0,
    )


def _require_aware(value: Optional[datetime], name: str) -> None:
    if value is not None and value.tzinfo is None:
        raise HTTPException(status_code=400, detail=f"{name} must carry a timezone offset")


@router.get("", response_model=EventsResponse)
def list_events(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=500),
    sort_by: str = Query(default="start_date", enum=["start_date", "event_name"]),
    order: str = Query(default="asc", enum=["asc", "desc"]),
    store: SqliteEventStore = Depends(get_store),
):
    """List events with sorting and pagination."""
    events, total = store.search(sort_by=sort_by, order=order, page=page, limit=limit)
    return _page(events, total, page, limit)


@router.get("/search", response_model=EventsResponse)
def search_events(
    name: Optional[str] = None,
    start_date_after: Optional[datetime] = None,
    end_date_before: Optional[datetime] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=500),
    sort_by: str = Query(default="start_date", enum=["start_date", "event_name"]),
    order: str = Query(default="asc", enum=["asc", "desc"]),
    store: SqliteEventStore = Depends(get_store),
):
    """Search by name fragment (case-insensitive) and date bounds."""
    _require_aware(start_date_after, "start_date_after")
    _require_aware(end_date_before, "end_date_before")
    events, total = store.search(name, start_date_after, end_date_before, sort_by, order, page, limit)
    return _page(events, total, page, limit)


@router.get("/statistics", response_model=EventStatistics)
def get_statistics(analytics: TimelineAnalytics = Depends(get_analytics)):
    with analytics_errors():
        return EventStatistics(**analytics.statistics())


@router.get("/{event_id}", response_model=Event)
def get_event(event_id: str, store: SqliteEventStore = Depends(get_store)):
    event = store.get_event(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return Event(**event.to_dict())


@router.get("/{event_id}/children", response_model=List[Event])
def get_children(event_id: str, store: SqliteEventStore = Depends(get_store)):
    if store.get_event(event_id) is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return [Event(**e.to_dict()) for e in store.get_child_events(event_id)]


@router.post("", response_model=Event, status_code=201)
def create_event(payload: EventCreate, store: SqliteEventStore = Depends(get_store)):
    with analytics_errors():
        event = models.Event(
            id=payload.event_id or str(uuid.uuid4()),
            name=payload.event_name,
            start=payload.start_date,
            end=payload.end_date,
            parent_id=payload.parent_event_id,
            description=payload.description,
            metadata=payload.metadata,
        )
    try:
        stored = store.add_event(event)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return Event(**stored.to_dict())


@router.put("/{event_id}", response_model=Event)
def update_event(event_id: str, payload: EventUpdate, store: SqliteEventStore = Depends(get_store)):
    # Only the parent may be cleared with an explicit null.
    changes = {
        UPDATE_FIELDS[key]: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key == "parent_event_id"
    }
    if changes.get("parent_id") == event_id:
        raise HTTPException(status_code=400, detail="An event cannot be its own parent")
    with analytics_errors():
        updated = store.update_event(event_id, **changes)
    return Event(**updated.to_dict())


@router.delete("/{event_id}", status_code=204)
def delete_event(event_id: str, store: SqliteEventStore = Depends(get_store)):
    """Delete an event; its children are kept as root events."""
    with analytics_errors():
        store.delete_event(event_id)
    return Response(status_code=204)
