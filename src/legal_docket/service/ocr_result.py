"""
OCR result ingestion.

Turns one submission from the OCR worker (or a user) into the canonical
DocumentText of a document and moves the document and its job to
``completed``. All writes share one transaction.
"""
import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import legal_docket.models.document as document_model
import legal_docket.models.document_text as text_model
import legal_docket.models.ocr_job as job_model
import legal_docket.schemas.ocr as ocr_schema
from legal_docket.database import dialect_insert
from legal_docket.exceptions import Conflict, InternalFailure, NotFound, ValidationFailed
from legal_docket.models.document import OcrStatus
from legal_docket.security import Caller, WorkerCaller
from legal_docket.service import access
from legal_docket.service import case as case_service
from legal_docket.service import ocr as ocr_service
from legal_docket.service.normalization import (
    NORMALIZATION_VERSION,
    needs_review_for,
    normalize_nepali,
    script_ratio,
    section_for,
    sha256_text,
    to_ascii_digits,
)

logger = logging.getLogger(__name__)

# Columns the upsert leaves alone on conflict
_KEY_COLUMNS = {"id", "org_id", "document_id", "created_at"}


def _resolve_document(db: Session, caller: Caller, document_id: UUID) -> document_model.Document:
    if isinstance(caller, WorkerCaller):
        document = db.get(document_model.Document, document_id)
        if document is None:
            raise NotFound("Document")
        return document
    return access.resolve_document(db, caller.subject, document_id)


def _resolve_job(db: Session, document: document_model.Document, job_id: UUID) -> job_model.OcrJob:
    """The submitting job must be the one the document currently points at."""
    job = db.query(job_model.OcrJob).filter(
        job_model.OcrJob.id == job_id,
        job_model.OcrJob.org_id == document.org_id,
        job_model.OcrJob.document_id == document.id,
    ).first()
    if job is None:
        raise NotFound("Job")
    if document.ocr_job_id != job.id:
        raise Conflict(
            f"Job {job.id} (attempt {job.attempt}) is not the current OCR job of document {document.id}"
        )
    return job


def page_summaries(per_page: list[ocr_schema.PageResult]) -> list[dict]:
    pages = []
    for p in per_page:
        text_len = p.text_len
        if text_len is None and p.text is not None:
            text_len = len(p.text)
        pages.append({
            "page": p.page,
            "confidence": p.confidence,
            "text_len": text_len,
            "text_density": p.text_density,
        })
    return pages


def build_text_record(
    document: document_model.Document, org_id: UUID, result: ocr_schema.OcrResult
) -> dict:
    """Column values of the DocumentText for ``result``. Pure; nothing is written."""
    normalized = normalize_nepali(result.full_text)
    garbage_rate = result.metrics.garbage_rate if result.metrics and result.metrics.garbage_rate is not None else 0
    return {
        "org_id": org_id,
        "document_id": document.id,
        "case_id": document.case_id,
        "section": section_for(document.document_type),
        "full_text": result.full_text,
        "full_text_ne_norm": normalized,
        "numbers_ascii": to_ascii_digits(normalized),
        "text_hash": sha256_text(normalized),
        "doc_type_hints": [document.document_type] if document.document_type else [],
        "entities": [e.model_dump() for e in result.entities],
        "search_hints": list(result.search_hints),
        "pages": page_summaries(result.per_page),
        "auto_sections": [s.model_dump() for s in result.auto_sections],
        "extraction": dict(result.extraction),
        "quality": {"avg_confidence": result.avg_confidence},
        "normalization": {
            "version": NORMALIZATION_VERSION,
            "needs_review": needs_review_for(result.avg_confidence) if result.avg_confidence is not None else False,
            "script_ratio": script_ratio(normalized),
            "garbage_rate": garbage_rate,
        },
    }


def _upsert_text(db: Session, record: dict) -> UUID:
    """Insert or wholly replace the DocumentText keyed by (org_id, document_id)."""
    now = datetime.now(timezone.utc)
    table = text_model.DocumentText.__table__
    values = dict(record, created_at=now, updated_at=now)
    stmt = dialect_insert(db, table).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["org_id", "document_id"],
        set_={k: v for k, v in values.items() if k not in _KEY_COLUMNS},
    )
    db.execute(stmt)
    return db.query(text_model.DocumentText.id).filter(
        text_model.DocumentText.org_id == record["org_id"],
        text_model.DocumentText.document_id == record["document_id"],
    ).scalar()


def _apply_document_ocr(
    document: document_model.Document, result: ocr_schema.OcrResult, text_doc_id: UUID
) -> None:
    if result.avg_confidence is not None:
        document.ocr_avg_confidence = result.avg_confidence
        document.ocr_needs_review = needs_review_for(result.avg_confidence)
    if result.per_page:
        document.ocr_per_page = [{"page": p.page, "confidence": p.confidence} for p in result.per_page]
    if result.metrics and result.metrics.pages is not None and not document.pages:
        document.pages = result.metrics.pages
    document.ocr_status = OcrStatus.COMPLETED.value
    document.ocr_text_doc_id = text_doc_id
    document.ocr_normalization_version = NORMALIZATION_VERSION


def save_result(
    db: Session,
    caller: Caller,
    document_id: UUID,
    result: ocr_schema.OcrResult,
    job_id: UUID | None = None,
) -> UUID:
    """
    Store an OCR result for a document and return the DocumentText id.

    Re-submitting for the same document replaces the previous text. When a
    ``job_id`` is given it has to be the document's current job, so a late
    result from a superseded attempt cannot overwrite a newer one.
    """
    if not isinstance(result.full_text, str) or not result.full_text.strip():
        raise ValidationFailed("full_text (string) is required")

    document = _resolve_document(db, caller, document_id)
    org_id = document.org_id
    job = _resolve_job(db, document, job_id) if job_id else None

    record = build_text_record(document, org_id, result)
    try:
        text_doc_id = _upsert_text(db, record)
        _apply_document_ocr(document, result, text_doc_id)
        if job is not None:
            ocr_service.complete(job, result.metrics)
        case_service.link_document(db, document.case_id, document.id)
        db.commit()
    except Conflict:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not store OCR result for document %s", document_id)
        raise InternalFailure()

    logger.info(
        "OCR result stored for document %s by %s (job=%s, section=%s, needs_review=%s)",
        document.id, ocr_service.caller_label(caller), job_id, record["section"],
        document.ocr_needs_review,
    )
    return text_doc_id
