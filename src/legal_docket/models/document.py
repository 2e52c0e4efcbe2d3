from legal_docket.database import Base
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint, Uuid
from sqlalchemy.sql import func
import enum
import uuid


class DocumentType(str, enum.Enum):
    POA = "POA"
    PETITION = "Petition"
    REPLY = "Reply"
    EVIDENCE = "Evidence"
    INTERIM_ORDER = "Interim Order"
    TESTIMONIAL = "Testimonial"
    DISTRICT_JUDGMENT = "District Judgment"
    HIGH_COURT_APPEAL = "High Court Appeal"
    HIGH_COURT_JUDGMENT = "High Court Judgment"
    SUPREME_COURT_APPEAL = "Supreme Court Appeal"
    SUPREME_COURT_JUDGMENT = "Supreme Court Judgment"


class OcrStatus(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


DEFAULT_LANGUAGE = {"iso": "ne", "script": "Devanagari", "mixed": True}


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        # Content dedup per org; NULL hashes never collide
        UniqueConstraint("org_id", "sha256", name="uq_documents_org_sha256"),
    )
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    case_id = Column(Uuid(as_uuid=True), ForeignKey("cases.id"), nullable=False, index=True)
    document_type = Column(String(50), nullable=False, index=True)
    uploaded_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    original_filename = Column(String(255), nullable=True)

    # --- Storage ---
    storage_provider = Column(String(20), nullable=False, default="local")
    storage_key = Column(String(1024), nullable=False)
    mime_type = Column(String(100), nullable=True)
    size_bytes = Column(Integer, nullable=True)
    sha256 = Column(String(64), nullable=True)
    pages = Column(Integer, nullable=True)

    language = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_LANGUAGE))
    source_ingest = Column(String(20), nullable=False, default="upload")
    exhibit_no = Column(String(50), nullable=True)
    exhibit_title = Column(String(255), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    # --- OCR pipeline; written only by the OCR services ---
    ocr_job_id = Column(Uuid(as_uuid=True), nullable=True)
    ocr_status = Column(String(20), nullable=False, default=OcrStatus.PENDING.value, index=True)
    ocr_engine = Column(String(100), nullable=True)
    ocr_avg_confidence = Column(Float, nullable=True)
    ocr_needs_review = Column(Boolean, nullable=False, default=False)
    ocr_per_page = Column(JSON, nullable=False, default=list)
    ocr_text_doc_id = Column(Uuid(as_uuid=True), nullable=True)
    ocr_normalization_version = Column(String(10), nullable=False, default="v1")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def storage(self) -> dict:
        return {
            "provider": self.storage_provider,
            "key": self.storage_key,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "sha256": self.sha256,
            "pages": self.pages,
        }

    @property
    def ocr(self) -> dict:
        return {
            "status": self.ocr_status,
            "engine": self.ocr_engine,
            "avg_confidence": self.ocr_avg_confidence,
            "needs_review": self.ocr_needs_review,
            "per_page": self.ocr_per_page or [],
            "text_doc_id": self.ocr_text_doc_id,
            "normalization_version": self.ocr_normalization_version,
        }

    @property
    def exhibit(self) -> dict | None:
        if not (self.exhibit_no or self.exhibit_title):
            return None
        return {"no": self.exhibit_no, "title": self.exhibit_title}
