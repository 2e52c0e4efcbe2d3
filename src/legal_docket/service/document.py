import logging
import re
from datetime import datetime, timezone
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import legal_docket.models.document as document_model
import legal_docket.models.document_text as text_model
import legal_docket.models.ocr_job as job_model
import legal_docket.schemas.document as document_schema
from legal_docket.config import settings
from legal_docket.exceptions import (
    Conflict, InternalFailure, NotFound, PayloadTooLarge, UnsupportedMedia,
)
from legal_docket.security import Subject
from legal_docket.service import access, storage
from legal_docket.service import case as case_service
from legal_docket.service.normalization import section_for

logger = logging.getLogger(__name__)

ALLOWED_MIME_RE = re.compile(r"pdf|png|jpg|jpeg|tif|tiff", re.IGNORECASE)


def read_upload(file: UploadFile) -> bytes:
    """Read the upload into memory, enforcing the type filter and the size limit."""
    if not file.content_type or not ALLOWED_MIME_RE.search(file.content_type):
        raise UnsupportedMedia(file.content_type)
    limit = settings.MAX_UPLOAD_BYTES
    data = file.file.read(limit + 1)
    if len(data) > limit:
        raise PayloadTooLarge(limit)
    return data


def new_job(document: document_model.Document, attempt: int = 1) -> job_model.OcrJob:
    return job_model.OcrJob(
        org_id=document.org_id,
        document_id=document.id,
        status=job_model.OcrJobStatus.QUEUED.value,
        engine=settings.OCR_ENGINE,
        attempt=attempt,
        queued_at=datetime.now(timezone.utc),
    )


def create_document(
    db: Session,
    subject: Subject,
    case_id: UUID,
    document_type: str,
    file: UploadFile,
    exhibit_no: str | None = None,
    exhibit_title: str | None = None,
) -> tuple[document_model.Document, job_model.OcrJob]:
    """
    Stores the upload, creates the Document and its first OcrJob, and links
    the document to its case, all in one transaction.

    The blob is written before the row. If anything after that fails, a blob
    written by this request is removed again.
    """
    db_case = access.resolve_case(db, subject, case_id)
    data = read_upload(file)

    try:
        blob = storage.put_blob(subject.org_id, data, file.filename)
    except OSError:
        logger.exception("Blob write failed for case %s", case_id)
        raise InternalFailure("Could not store the uploaded file")

    is_evidence = document_type == document_model.DocumentType.EVIDENCE.value
    db_document = document_model.Document(
        org_id=subject.org_id,
        case_id=db_case.id,
        document_type=document_type,
        uploaded_by=subject.subject_id,
        original_filename=file.filename,
        storage_provider=storage.PROVIDER,
        storage_key=blob.key,
        mime_type=file.content_type,
        size_bytes=blob.size_bytes,
        sha256=blob.sha256,
        language=dict(document_model.DEFAULT_LANGUAGE),
        source_ingest="upload",
        exhibit_no=exhibit_no if is_evidence else None,
        exhibit_title=exhibit_title if is_evidence else None,
        ocr_status=document_model.OcrStatus.PENDING.value,
        ocr_needs_review=False,
        ocr_per_page=[],
    )
    try:
        db.add(db_document)
        db.flush()
        job = new_job(db_document)
        db.add(job)
        db.flush()
        db_document.ocr_job_id = job.id
        db_document.ocr_engine = job.engine
        case_service.link_document(db, db_case.id, db_document.id)
        db.commit()
    except IntegrityError:
        db.rollback()
        _discard_blob(blob)
        raise Conflict("Duplicate document (same file hash)")
    except SQLAlchemyError:
        db.rollback()
        _discard_blob(blob)
        logger.exception("Could not create document for case %s", case_id)
        raise InternalFailure()

    db.refresh(db_document)
    db.refresh(job)
    logger.info(
        "Document %s (%s) uploaded to case %s by %s; OCR job %s queued",
        db_document.id, document_type, db_case.id, subject.subject_id, job.id,
    )
    return db_document, job


def _discard_blob(blob: storage.StoredBlob) -> None:
    if blob.created:
        storage.delete_blob(blob.key)


def list_documents(
    db: Session,
    subject: Subject,
    case_id: UUID,
    document_type: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[document_model.Document], int]:
    db_case = access.resolve_case(db, subject, case_id)
    Document = document_model.Document
    query = db.query(Document).filter(
        Document.org_id == subject.org_id,
        Document.case_id == db_case.id,
    )
    if document_type:
        query = query.filter(Document.document_type == document_type)
    total = query.count()
    items = query.order_by(Document.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return items, total


def get_document(db: Session, subject: Subject, document_id: UUID) -> document_model.Document:
    return access.resolve_document(db, subject, document_id)


def update_document(
    db: Session, subject: Subject, document_id: UUID, updates: document_schema.DocumentUpdate
) -> document_model.Document:
    db_document = access.resolve_document(db, subject, document_id)
    sent = updates.model_fields_set

    if "document_type" in sent and updates.document_type and updates.document_type != db_document.document_type:
        db_document.document_type = updates.document_type
        # Keep the section of already extracted text in step with the type
        db.query(text_model.DocumentText).filter(
            text_model.DocumentText.org_id == db_document.org_id,
            text_model.DocumentText.document_id == db_document.id,
        ).update(
            {"section": section_for(updates.document_type), "doc_type_hints": [updates.document_type]},
            synchronize_session=False,
        )
    if "exhibit_no" in sent:
        db_document.exhibit_no = updates.exhibit_no
    if "exhibit_title" in sent:
        db_document.exhibit_title = updates.exhibit_title
    if "language" in sent and updates.language is not None:
        db_document.language = updates.language.model_dump()

    db_document.version = (db_document.version or 1) + 1
    db.commit()
    db.refresh(db_document)
    return db_document


def delete_document(db: Session, subject: Subject, document_id: UUID) -> None:
    """Admin only. Detaches the document from its case, drops its text and releases the blob."""
    access.require_admin(subject)
    db_document = access.resolve_document(db, subject, document_id)
    blob_key = db_document.storage_key

    db.query(text_model.DocumentText).filter(
        text_model.DocumentText.org_id == subject.org_id,
        text_model.DocumentText.document_id == db_document.id,
    ).delete(synchronize_session=False)
    case_service.unlink_document(db, db_document.case_id, db_document.id)
    db.delete(db_document)
    db.commit()
    logger.info("Document %s deleted by %s", document_id, subject.subject_id)

    storage.delete_blob(blob_key)


def get_document_text(db: Session, subject: Subject, document_id: UUID) -> text_model.DocumentText:
    db_document = access.resolve_document(db, subject, document_id)
    doc_text = db.query(text_model.DocumentText).filter(
        text_model.DocumentText.org_id == subject.org_id,
        text_model.DocumentText.document_id == db_document.id,
    ).first()
    if doc_text is None:
        raise NotFound("Document text")
    return doc_text
