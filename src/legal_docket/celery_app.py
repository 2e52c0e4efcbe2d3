from celery import Celery
from legal_docket.config import settings

# The API only publishes OCR work; the OCR engine runs in a separate worker
# deployment that consumes the queue and posts results back over HTTP.
celery_worker = Celery(
    "legal_docket",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_worker.conf.update(
    task_track_started=True,
    task_routes={settings.OCR_TASK_NAME: {"queue": settings.OCR_QUEUE}},
)
