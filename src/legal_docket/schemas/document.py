from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional

DocumentTypeName = Literal[
    "POA",
    "Petition",
    "Reply",
    "Evidence",
    "Interim Order",
    "Testimonial",
    "District Judgment",
    "High Court Appeal",
    "High Court Judgment",
    "Supreme Court Appeal",
    "Supreme Court Judgment",
]


class Storage(BaseModel):
    provider: str
    key: str
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None
    sha256: Optional[str] = None
    pages: Optional[int] = None

class PageConfidence(BaseModel):
    page: Optional[int] = None
    confidence: Optional[float] = None

class OcrState(BaseModel):
    status: str
    engine: Optional[str] = None
    avg_confidence: Optional[float] = None
    needs_review: bool
    per_page: list[PageConfidence]
    text_doc_id: Optional[UUID] = None
    normalization_version: str

class Exhibit(BaseModel):
    no: Optional[str] = None
    title: Optional[str] = None

class Language(BaseModel):
    iso: str = "ne"
    script: str = "Devanagari"
    mixed: bool = True


class Document(BaseModel):
    id: UUID
    org_id: UUID
    case_id: UUID
    document_type: str
    uploaded_by: UUID
    original_filename: Optional[str] = None
    storage: Storage
    language: Language
    source_ingest: str
    exhibit: Optional[Exhibit] = None
    version: int
    ocr: OcrState
    ocr_job_id: Optional[UUID] = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

class DocumentUpdate(BaseModel):
    document_type: Optional[DocumentTypeName] = None
    exhibit_no: Optional[str] = None
    exhibit_title: Optional[str] = None
    language: Optional[Language] = None

class DocumentUploaded(BaseModel):
    document: Document
    ocr_job_id: UUID

class DocumentPage(BaseModel):
    page: int
    limit: int
    total: int
    items: list[Document]


class DocumentText(BaseModel):
    id: UUID
    org_id: UUID
    document_id: UUID
    case_id: UUID
    section: str
    full_text: str
    full_text_ne_norm: Optional[str] = None
    numbers_ascii: Optional[str] = None
    text_hash: Optional[str] = None
    doc_type_hints: list
    entities: list
    search_hints: list
    pages: list
    auto_sections: list
    extraction: dict
    quality: dict
    normalization: dict

    class Config:
        from_attributes = True
