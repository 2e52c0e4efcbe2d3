"""
OCR job scheduling.

A job moves ``queued -> running -> completed|failed`` or straight from
``queued`` to ``completed``/``failed``. Nothing leaves ``completed``.
Every transition is triggered by an inbound call; there is no poller.
"""
import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

import legal_docket.models.case as case_model
import legal_docket.models.document as document_model
import legal_docket.models.ocr_job as job_model
import legal_docket.schemas.ocr as ocr_schema
from legal_docket.exceptions import Conflict, NotFound
from legal_docket.models.document import OcrStatus
from legal_docket.models.ocr_job import OcrJobStatus
from legal_docket.security import Caller, Subject, UserCaller, WorkerCaller
from legal_docket.service import access
from legal_docket.service.document import new_job

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown OCR error"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _metrics_dict(metrics: ocr_schema.OcrMetrics | None) -> dict | None:
    if metrics is None:
        return None
    return metrics.model_dump()


def _org_job(db: Session, org_id: UUID, job_id: UUID) -> job_model.OcrJob:
    job = db.query(job_model.OcrJob).filter(
        job_model.OcrJob.id == job_id,
        job_model.OcrJob.org_id == org_id,
    ).first()
    if job is None:
        raise NotFound("Job")
    return job


def resolve_job(db: Session, subject: Subject, job_id: UUID) -> job_model.OcrJob:
    """Load a job of the subject's org; reach is decided by the job's document's case."""
    job = _org_job(db, subject.org_id, job_id)
    access.resolve_document(db, subject, job.document_id)
    return job


def resolve_job_for(db: Session, caller: Caller, job_id: UUID) -> job_model.OcrJob:
    """The worker reaches any job; a user goes through case scoping."""
    if isinstance(caller, WorkerCaller):
        job = db.get(job_model.OcrJob, job_id)
        if job is None:
            raise NotFound("Job")
        return job
    return resolve_job(db, caller.subject, job_id)


def queue(db: Session, subject: Subject, document_id: UUID) -> tuple[job_model.OcrJob, document_model.Document]:
    """
    Queue a first or follow-up OCR attempt for a document.

    Refused with Conflict while the document's current job is still queued or
    running; ``requeue`` is the Admin escape hatch for stuck jobs.
    """
    document = access.resolve_document(db, subject, document_id)
    active = db.query(job_model.OcrJob).filter(
        job_model.OcrJob.org_id == document.org_id,
        job_model.OcrJob.document_id == document.id,
        job_model.OcrJob.status.in_(job_model.ACTIVE_JOB_STATUSES),
    ).first()
    if active is not None:
        raise Conflict(f"Document already has an active OCR job {active.id} (status={active.status})")

    job = new_job(document)
    _attach(db, document, job)
    logger.info("OCR job %s queued for document %s by %s", job.id, document.id, subject.subject_id)
    return job, document


def requeue(db: Session, subject: Subject, document_id: UUID) -> tuple[job_model.OcrJob, document_model.Document]:
    """
    Admin only. Start over with a brand-new job whatever state the current one is in.

    The previous job is left as it is; it is no longer referenced by the
    document but stays readable by id.
    """
    access.require_admin(subject)
    document = access.resolve_document(db, subject, document_id)
    previous = db.get(job_model.OcrJob, document.ocr_job_id) if document.ocr_job_id else None
    attempt = (previous.attempt + 1) if previous is not None else 1

    job = new_job(document, attempt=attempt)
    _attach(db, document, job)
    logger.info(
        "OCR re-queued for document %s by %s: job %s (attempt %s) replaces %s",
        document.id, subject.subject_id, job.id, attempt, previous.id if previous else None,
    )
    return job, document


def _attach(db: Session, document: document_model.Document, job: job_model.OcrJob) -> None:
    db.add(job)
    db.flush()
    document.ocr_job_id = job.id
    document.ocr_status = OcrStatus.PENDING.value
    document.ocr_engine = job.engine
    db.commit()
    db.refresh(job)
    db.refresh(document)


def start(db: Session, subject: Subject, job_id: UUID, engine: str | None = None) -> job_model.OcrJob:
    job = resolve_job(db, subject, job_id)
    if job.status != OcrJobStatus.QUEUED.value:
        raise Conflict(f"Job not queued (status={job.status})")

    job.status = OcrJobStatus.RUNNING.value
    job.engine = engine or job.engine
    job.started_at = _now()
    db.query(document_model.Document).filter(
        document_model.Document.id == job.document_id,
        document_model.Document.org_id == job.org_id,
        document_model.Document.ocr_job_id == job.id,
    ).update(
        {"ocr_status": OcrStatus.RUNNING.value, "ocr_engine": job.engine},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(job)
    logger.info("OCR job %s started (engine=%s)", job.id, job.engine)
    return job


def complete(job: job_model.OcrJob, metrics: ocr_schema.OcrMetrics | None) -> None:
    """
    Mark a job completed. Joins the caller's transaction; the result pipeline commits.

    Allowed from ``queued`` and ``running``. A completed job may take a
    re-submission, which refreshes its metrics. A failed job stays failed.
    """
    if job.status == OcrJobStatus.FAILED.value:
        raise Conflict(f"Job already finished (status={job.status})")
    if job.status != OcrJobStatus.COMPLETED.value:
        job.status = OcrJobStatus.COMPLETED.value
        job.finished_at = _now()
    job.error = None
    job.metrics = _metrics_dict(metrics)


def fail(
    db: Session, caller: Caller, job_id: UUID, failure: ocr_schema.FailRequest
) -> job_model.OcrJob:
    """
    Record a failed attempt. Permitted from any state.

    The document only follows to ``failed`` when it is not already
    ``completed``: a late failure for an old job must not undo a newer result.
    """
    job = resolve_job_for(db, caller, job_id)

    job.status = OcrJobStatus.FAILED.value
    job.finished_at = _now()
    job.error = {"message": failure.message or UNKNOWN_ERROR, "stack": failure.stack}
    if failure.metrics is not None:
        job.metrics = _metrics_dict(failure.metrics)

    regressed = db.query(document_model.Document).filter(
        document_model.Document.id == job.document_id,
        document_model.Document.org_id == job.org_id,
        document_model.Document.ocr_status != OcrStatus.COMPLETED.value,
    ).update({"ocr_status": OcrStatus.FAILED.value}, synchronize_session=False)
    db.commit()
    db.refresh(job)
    logger.warning(
        "OCR job %s failed (%s); document %s %s",
        job.id, job.error["message"], job.document_id,
        "marked failed" if regressed else "left unchanged",
    )
    return job


def get_job(db: Session, subject: Subject, job_id: UUID) -> job_model.OcrJob:
    """Admins see every job of their org, including jobs of deleted documents."""
    if subject.is_admin:
        return _org_job(db, subject.org_id, job_id)
    return resolve_job(db, subject, job_id)


def list_jobs(
    db: Session,
    subject: Subject,
    status: str | None = None,
    document_id: UUID | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[job_model.OcrJob], int]:
    OcrJob = job_model.OcrJob
    query = db.query(OcrJob).filter(OcrJob.org_id == subject.org_id)
    if not subject.is_admin:
        reachable_cases = select(case_model.Case.id).where(access.case_scope_filter(subject))
        reachable_documents = select(document_model.Document.id).where(
            document_model.Document.org_id == subject.org_id,
            document_model.Document.case_id.in_(reachable_cases),
        )
        query = query.filter(OcrJob.document_id.in_(reachable_documents))
    if status:
        query = query.filter(OcrJob.status == status)
    if document_id:
        query = query.filter(OcrJob.document_id == document_id)
    total = query.count()
    items = query.order_by(OcrJob.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return items, total


def caller_label(caller: Caller) -> str:
    if isinstance(caller, UserCaller):
        return str(caller.subject.subject_id)
    return "worker"
