from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

import legal_docket.schemas.ocr as ocr_schema
import legal_docket.service.ocr as ocr_service
import legal_docket.service.ocr_result as ocr_result_service
from legal_docket import security
from legal_docket.database import get_db
from legal_docket.models.user import Role
from legal_docket.security import Caller, Subject
from legal_docket.tasks import dispatch_ocr_job

# No router-wide auth: the result and fail endpoints also accept the OCR worker key
router = APIRouter(tags=["OCR"])

JobStatusName = ocr_schema.JobStatusName


@router.post("/ocr/jobs/queue", response_model=ocr_schema.JobReference, status_code=status.HTTP_201_CREATED)
def queue_ocr_job(
    request: ocr_schema.QueueRequest,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.require_roles(Role.ADMIN, Role.LAWYER)),
):
    job, document = ocr_service.queue(db, subject, request.document_id)
    dispatch_ocr_job(job, document)
    return {"message": "OCR job queued", "job_id": job.id, "status": job.status, "engine": job.engine}

@router.post("/ocr/jobs/{job_id}/start", response_model=ocr_schema.JobReference)
def start_ocr_job(
    job_id: UUID,
    request: Optional[ocr_schema.StartRequest] = None,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.require_roles(Role.ADMIN)),
):
    job = ocr_service.start(db, subject, job_id, engine=request.engine if request else None)
    return {"message": "Job started", "job_id": job.id, "status": job.status, "engine": job.engine}

@router.post("/ocr/jobs/{job_id}/fail", response_model=ocr_schema.JobReference)
def fail_ocr_job(
    job_id: UUID,
    request: Optional[ocr_schema.FailRequest] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(security.get_caller),
):
    """Worker or user. A failed job is a normal outcome, reported with 200."""
    job = ocr_service.fail(db, caller, job_id, request or ocr_schema.FailRequest())
    return {"message": "Job marked as failed", "job_id": job.id, "status": job.status, "engine": job.engine}

@router.get("/ocr/jobs/{job_id}", response_model=ocr_schema.OcrJob)
def read_ocr_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    return ocr_service.get_job(db, subject, job_id)

@router.get("/ocr/jobs", response_model=ocr_schema.OcrJobPage)
def read_ocr_jobs(
    status: Optional[JobStatusName] = None,
    document_id: Optional[UUID] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    """Admins see every job of the org; Lawyers only jobs of documents in cases they reach."""
    items, total = ocr_service.list_jobs(
        db, subject, status=status, document_id=document_id, page=page, limit=limit
    )
    return {"page": page, "limit": limit, "total": total, "items": items}

@router.post("/documents/{document_id}/ocr-result", response_model=ocr_schema.OcrResultSaved)
def submit_ocr_result(
    document_id: UUID,
    result: ocr_schema.OcrResult,
    job_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(security.get_caller),
):
    """
    Entry point of the text pipeline. Called by the OCR worker with its shared
    key, or by a user who can reach the document's case.
    """
    text_id = ocr_result_service.save_result(db, caller, document_id, result, job_id=job_id)
    return {"message": "OCR result saved", "document_text_id": text_id}
