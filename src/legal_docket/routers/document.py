from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

import legal_docket.schemas.document as document_schema
import legal_docket.schemas.ocr as ocr_schema
import legal_docket.service.document as document_service
import legal_docket.service.ocr as ocr_service
from legal_docket import security
from legal_docket.database import get_db
from legal_docket.models.user import Role
from legal_docket.security import Subject
from legal_docket.tasks import dispatch_ocr_job

router = APIRouter(
    prefix="/documents",
    tags=["Documents"],
    dependencies=[Depends(security.get_current_subject)]
)

@router.post("/upload", response_model=document_schema.DocumentUploaded, status_code=status.HTTP_201_CREATED)
def upload_document(
    file: UploadFile = File(...),
    case_id: UUID = Form(...),
    document_type: document_schema.DocumentTypeName = Form(...),
    exhibit_no: Optional[str] = Form(None),
    exhibit_title: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.require_roles(Role.ADMIN, Role.LAWYER)),
):
    """
    Uploads a document to a case, stores the file by content hash, creates
    the DB record with its first OCR job, and hands the job to the OCR worker.
    """
    try:
        db_document, job = document_service.create_document(
            db, subject, case_id, document_type, file,
            exhibit_no=exhibit_no, exhibit_title=exhibit_title,
        )
    finally:
        file.file.close() # Ensure the file is closed

    dispatch_ocr_job(job, db_document)
    return {"document": db_document, "ocr_job_id": job.id}

@router.get("/{document_id}", response_model=document_schema.Document)
def read_document(
    document_id: UUID,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    return document_service.get_document(db, subject, document_id)

@router.patch("/{document_id}", response_model=document_schema.Document)
def update_document(
    document_id: UUID,
    updates: document_schema.DocumentUpdate,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    return document_service.update_document(db, subject, document_id, updates)

@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: UUID,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.require_roles(Role.ADMIN)),
):
    document_service.delete_document(db, subject, document_id)

@router.get("/{document_id}/text", response_model=document_schema.DocumentText)
def read_document_text(
    document_id: UUID,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    return document_service.get_document_text(db, subject, document_id)

@router.post("/{document_id}/requeue-ocr", response_model=ocr_schema.JobReference)
def requeue_ocr(
    document_id: UUID,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.require_roles(Role.ADMIN)),
):
    """Replaces the document's OCR job with a fresh one, whatever state the old one is in."""
    job, db_document = ocr_service.requeue(db, subject, document_id)
    dispatch_ocr_job(job, db_document)
    return {"message": "OCR re-queued", "job_id": job.id, "status": job.status, "engine": job.engine}
