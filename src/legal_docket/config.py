import os
from pydantic_settings import BaseSettings


def _default_database_url() -> str:
    # Compose from the POSTGRES_* variables when the compose file provides them
    if os.getenv("POSTGRES_HOST"):
        return (
            f"postgresql://{os.getenv('POSTGRES_USER')}:{os.getenv('POSTGRES_PASSWORD')}"
            f"@{os.getenv('POSTGRES_HOST')}:{os.getenv('POSTGRES_PORT', '5432')}"
            f"/{os.getenv('POSTGRES_DB')}"
        )
    return "sqlite:///./legal_docket.db"


class Settings(BaseSettings):
    """
    Configuration settings for the application, loaded from environment variables.
    """
    DATABASE_URL: str = _default_database_url()

    # Redis URL (for Celery Broker)
    REDIS_HOST: str = os.getenv("REDIS_HOST", "redis")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", 6379))
    CELERY_BROKER_URL: str = f"redis://{REDIS_HOST}:{REDIS_PORT}/0"
    CELERY_RESULT_BACKEND: str = f"redis://{REDIS_HOST}:{REDIS_PORT}/0"

    # JWT Secret Key
    SECRET_KEY: str = "dev-secret-change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Directory for storing uploaded files (inside the container)
    STORAGE_PATH: str = "/storage"
    MAX_UPLOAD_BYTES: int = 500 * 1024 * 1024

    # --- OCR worker ---
    # Shared secret presented by the external OCR worker; empty disables the worker path
    OCR_WORKER_KEY: str = ""
    OCR_ENGINE: str = "tesseract-nepali-5.4"
    OCR_TASK_NAME: str = "ocr.process_document"
    OCR_QUEUE: str = "ocr"
    OCR_DISPATCH_ENABLED: bool = True

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

# Instantiate the settings
settings = Settings()
