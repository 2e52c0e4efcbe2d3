from legal_docket.database import Base
from sqlalchemy import Column, String, Text, DateTime, JSON, UniqueConstraint, Uuid
from sqlalchemy.sql import func
import uuid


class DocumentText(Base):
    """Canonical extracted text of one Document. Replaced wholesale on every OCR result."""
    __tablename__ = "document_texts"
    __table_args__ = (
        UniqueConstraint("org_id", "document_id", name="uq_document_texts_org_document"),
    )
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    document_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    case_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    # poa, petition, reply, evidence, order, judgment, appeal, other
    section = Column(String(20), nullable=False)

    full_text = Column(Text, nullable=False)
    full_text_ne_norm = Column(Text, nullable=True)
    numbers_ascii = Column(Text, nullable=True, index=True)
    text_hash = Column(String(64), nullable=True)

    doc_type_hints = Column(JSON, nullable=False, default=list)
    entities = Column(JSON, nullable=False, default=list)
    search_hints = Column(JSON, nullable=False, default=list)
    pages = Column(JSON, nullable=False, default=list)
    auto_sections = Column(JSON, nullable=False, default=list)
    extraction = Column(JSON, nullable=False, default=dict)
    quality = Column(JSON, nullable=False, default=dict)
    normalization = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
