"""Ingestion Pydantic models."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class IngestRequest(BaseModel):
    """Either a server-side ``file_path`` or base64 ``content`` with a ``filename``."""

    file_path: Optional[str] = None
    filename: Optional[str] = None
    content: Optional[str] = Field(default=None, description="Base64-encoded file body")

    @model_validator(mode="after")
    def check_source(self):
        if bool(self.file_path) == bool(self.content):
            raise ValueError("Provide exactly one of file_path or content")
        if self.content and not self.filename:
            raise ValueError("filename is required with content")
        return self


class IngestAccepted(BaseModel):
    message: str
    job_id: str
    status: str


class IngestionStatus(BaseModel):
    job_id: str
    status: str
    source: str
    started_at: str
    finished_at: Optional[str] = None
    events_ingested: int = 0
    events_skipped: int = 0
    total_lines: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None
