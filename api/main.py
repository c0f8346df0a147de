"""FastAPI application for the event timeline analytics API."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from analytics.config import AnalyticsSettings, load_settings
from analytics.service import TimelineAnalytics
from api.routers import events, gaps, influence, ingest, insights, timeline
from api.services.jobs import JobRegistry
from cli.store import SqliteEventStore

API_VERSION = "0.3.0"

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_app(
    store: Optional[SqliteEventStore] = None,
    settings: Optional[AnalyticsSettings] = None,
    jobs: Optional[JobRegistry] = None,
) -> FastAPI:
    """Build the API around one event store.

    The store's schema is created on startup when missing.
    """
    store = store if store is not None else SqliteEventStore()
    settings = settings if settings is not None else load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.init()
        logger.info("Serving events from %s", store.db_path)
        yield

    app = FastAPI(
        title="Event Timeline Analytics API",
        description="""
        REST API over a collection of timed, hierarchical events.

        Provides access to:
        - Event storage, search and statistics
        - Background file ingestion with job status
        - Overlap and temporal gap detection, with what-if simulation
        - Shortest precedence and hierarchy paths
        - Hierarchical influence propagation
        - Hierarchical and windowed timelines
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.state.store = store
    app.state.analytics = TimelineAnalytics(store, settings)
    app.state.jobs = jobs if jobs is not None else JobRegistry()

    # Configure CORS for a browser frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Ingestion registers literal /events/... paths, so it precedes the events router
    app.include_router(ingest.router, prefix="/api")
    app.include_router(events.router, prefix="/api")
    app.include_router(timeline.router, prefix="/api")
    app.include_router(insights.router, prefix="/api")
    app.include_router(gaps.router, prefix="/api")
    app.include_router(influence.router, prefix="/api")

    @app.get("/api/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": API_VERSION}

    @app.get("/")
    def root():
        return {
            "message": "Event Timeline Analytics API",
            "docs": "/api/docs",
            "health": "/api/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
