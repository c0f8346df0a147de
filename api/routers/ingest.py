"""Background file ingestion endpoints."""
import base64
import binascii
import tempfile
from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from api.deps import get_jobs, get_store
from api.schemas.ingest import IngestAccepted, IngestionStatus, IngestRequest
from api.services.jobs import JobRegistry
from cli.store import SqliteEventStore

router = APIRouter(prefix="/events", tags=["ingestion"])


@router.post("/ingest", response_model=IngestAccepted, status_code=202)
def ingest_events(
    payload: IngestRequest,
    background_tasks: BackgroundTasks,
    store: SqliteEventStore = Depends(get_store),
    jobs: JobRegistry = Depends(get_jobs),
):
    """Queue a CSV, NDJSON or pipe-separated file for ingestion."""
    if payload.file_path:
        path = Path(payload.file_path)
        if not path.is_file():
            raise HTTPException(status_code=400, detail=f"File not found: {payload.file_path}")
        cleanup = False
    else:
        try:
            body = base64.b64decode(payload.content, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="content is not valid base64")
        path = Path(tempfile.mkdtemp(prefix="ingest-")) / Path(payload.filename).name
        path.write_bytes(body)
        cleanup = True

    job = jobs.create(path.name)
    background_tasks.add_task(jobs.run_ingestion, job.job_id, store, path, cleanup)
    return IngestAccepted(message="File upload started", job_id=job.job_id, status=job.status.value)


@router.get("/ingestion-status/{job_id}", response_model=IngestionStatus)
def get_ingestion_status(job_id: str, jobs: JobRegistry = Depends(get_jobs)):
    status = jobs.status(job_id)
    if status is None:
        raise HTTPException(status_code=404, detail=f"Ingestion job {job_id} not found")
    return IngestionStatus(**status)
