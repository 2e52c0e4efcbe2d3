from legal_docket.database import Base
from sqlalchemy import Column, String, Integer, DateTime, JSON, Uuid
from sqlalchemy.sql import func
import enum
import uuid


class OcrJobStatus(str, enum.Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


ACTIVE_JOB_STATUSES = (OcrJobStatus.QUEUED.value, OcrJobStatus.RUNNING.value)


class OcrJob(Base):
    __tablename__ = "ocr_jobs"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    # Not a foreign key: job rows outlive their document for audit
    document_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=OcrJobStatus.QUEUED.value, index=True)
    engine = Column(String(100), nullable=True)
    attempt = Column(Integer, nullable=False, default=1)
    queued_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)
    metrics = Column(JSON, nullable=True)  # {pages, duration_ms, garbage_rate}
    error = Column(JSON, nullable=True)    # {message, stack}
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_JOB_STATUSES
