import logging

from legal_docket.celery_app import celery_worker
from legal_docket.config import settings

logger = logging.getLogger(__name__)


def dispatch_ocr_job(job, document) -> bool:
    """
    Publish an OCR job to the external worker queue.

    Runs after the job row is committed. A broker outage is logged and
    swallowed: the job stays ``queued`` and an Admin can requeue it.
    """
    if not settings.OCR_DISPATCH_ENABLED:
        logger.debug("OCR dispatch disabled; job %s left for polling workers", job.id)
        return False
    try:
        celery_worker.send_task(
            settings.OCR_TASK_NAME,
            kwargs={
                "job_id": str(job.id),
                "document_id": str(document.id),
                "storage_key": document.storage_key,
                "engine": job.engine,
            },
            queue=settings.OCR_QUEUE,
        )
    except Exception:
        logger.exception("Failed to dispatch OCR job %s for document %s", job.id, document.id)
        return False
    logger.info("Dispatched OCR job %s (attempt %s) for document %s", job.id, job.attempt, document.id)
    return True
