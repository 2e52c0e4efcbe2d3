from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Any, Literal, Optional

JobStatusName = Literal["queued", "running", "completed", "failed"]


class OcrMetrics(BaseModel):
    pages: Optional[int] = None
    duration_ms: Optional[int] = None
    garbage_rate: Optional[float] = None

class OcrError(BaseModel):
    message: Optional[str] = None
    stack: Optional[str] = None

class OcrJob(BaseModel):
    id: UUID
    org_id: UUID
    document_id: UUID
    status: str
    engine: Optional[str] = None
    attempt: int
    queued_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    metrics: Optional[OcrMetrics] = None
    error: Optional[OcrError] = None

    class Config:
        from_attributes = True

class OcrJobPage(BaseModel):
    page: int
    limit: int
    total: int
    items: list[OcrJob]

class QueueRequest(BaseModel):
    document_id: UUID

class StartRequest(BaseModel):
    engine: Optional[str] = None

class FailRequest(BaseModel):
    message: Optional[str] = None
    stack: Optional[str] = None
    metrics: Optional[OcrMetrics] = None

class JobReference(BaseModel):
    message: str
    job_id: UUID
    status: str
    engine: Optional[str] = None


class PageResult(BaseModel):
    page: Optional[int] = None
    confidence: Optional[float] = None
    text_len: Optional[int] = None
    text: Optional[str] = None
    text_density: Optional[float] = None

class Entity(BaseModel):
    type: Optional[str] = None
    value: Optional[str] = None
    offset: Optional[int] = None
    length: Optional[int] = None

class AutoSection(BaseModel):
    label: Optional[str] = None
    page_start: Optional[int] = None
    page_end: Optional[int] = None
    confidence: Optional[float] = None

class OcrResult(BaseModel):
    """Payload posted by the OCR worker (or a user) for one document."""
    # Checked by the pipeline so an empty submission is a 400 with no side effects
    full_text: Optional[Any] = None
    avg_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    per_page: list[PageResult] = []
    auto_sections: list[AutoSection] = []
    entities: list[Entity] = []
    search_hints: list[str] = []
    extraction: dict = {}
    metrics: Optional[OcrMetrics] = None

class OcrResultSaved(BaseModel):
    message: str
    document_text_id: UUID
