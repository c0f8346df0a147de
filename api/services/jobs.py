"""In-process registry of background ingestion jobs."""
from __future__ import annotations

import logging
import shutil
import threading
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from cli.ingest import IngestResult, ingest_file
from cli.store import SqliteEventStore
from cli.utils import now_utc_iso

logger = logging.getLogger(__name__)

MAX_FINISHED_JOBS = 100


class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class IngestionJob:
    job_id: str
    source: str
    status: JobStatus = JobStatus.PROCESSING
    started_at: str = field(default_factory=now_utc_iso)
    finished_at: Optional[str] = None
    events_ingested: int = 0
    events_skipped: int = 0
    total_lines: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


class JobRegistry:
    """Thread-safe job table; the oldest finished jobs are evicted past ``max_finished``."""

    def __init__(self, max_finished: int = MAX_FINISHED_JOBS):
        self.max_finished = max_finished
        self._jobs: Dict[str, IngestionJob] = {}
        self._lock = threading.Lock()

    def create(self, source: str) -> IngestionJob:
        job = IngestionJob(job_id=uuid.uuid4().hex, source=source)
        with self._lock:
            self._jobs[job.job_id] = job
        return job

    def get(self, job_id: str) -> Optional[IngestionJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def status(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Consistent snapshot of a job, or None when unknown or evicted."""
        with self._lock:
            job = self._jobs.get(job_id)
            return job.to_dict() if job is not None else None

    def _update(self, job: IngestionJob, **fields: Any) -> None:
        with self._lock:
            for name, value in fields.items():
                setattr(job, name, value)

    def _finish(self, job: IngestionJob, status: JobStatus, **fields: Any) -> None:
        with self._lock:
            for name, value in fields.items():
                setattr(job, name, value)
            job.status = status
            job.finished_at = now_utc_iso()
            finished = [j for j in self._jobs.values() if j.status is not JobStatus.PROCESSING]
            for stale in finished[: max(0, len(finished) - self.max_finished)]:
                del self._jobs[stale.job_id]

    def run_ingestion(
        self,
        job_id: str,
        store: SqliteEventStore,
        path: Path,
        cleanup: bool = False,
    ) -> None:
        """Ingest ``path`` into ``store`` and record the outcome on the job.

        Malformed lines are recorded on the job. Any error that escapes the
        ingestion itself fails the job, so it never stays processing.
        With ``cleanup`` the temporary directory holding an uploaded file is removed.
        """
        job = self.get(job_id)
        if job is None:
            logger.warning("Ingestion job %s vanished before it started", job_id)
            return

        def progress(partial: IngestResult) -> None:
            self._update(job, total_lines=partial.total_lines, events_skipped=partial.events_skipped)

        try:
            result = ingest_file(store, path, progress_callback=progress)
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Ingestion job %s failed: %s", job_id, exc)
            self._finish(job, JobStatus.FAILED, error=str(exc))
            return
        except Exception as exc:
            logger.exception("Ingestion job %s failed unexpectedly", job_id)
            self._finish(job, JobStatus.FAILED, error=f"{type(exc).__name__}: {exc}")
            return
        finally:
            if cleanup:
                shutil.rmtree(path.parent, ignore_errors=True)

        self._finish(
            job,
            JobStatus.COMPLETED,
            events_ingested=result.events_ingested,
            events_skipped=result.events_skipped,
            total_lines=result.total_lines,
            errors=list(result.errors),
        )
        logger.info(
            "Ingestion job %s completed: %d ingested, %d skipped",
            job_id, result.events_ingested, result.events_skipped,
        )
