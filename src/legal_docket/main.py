import logging

import redis
from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text

from legal_docket.config import settings
from legal_docket.database import Base, engine, get_db
from legal_docket.logger import configure_logging
from legal_docket.middleware.correlation import CorrelationMiddleware
from legal_docket.routers import auth, calendar, case, document, ocr, user

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Legal Docket API",
    description="Case management and Nepali/English OCR ingestion for law offices.",
    version="0.1.0",
)

@app.on_event("startup")
def startup():
    import legal_docket.models  # noqa: F401  registers every table on Base
    Base.metadata.create_all(bind=engine)

app.add_middleware(CorrelationMiddleware)

app.include_router(auth.router)
app.include_router(user.router)
app.include_router(case.router)
app.include_router(document.router)
app.include_router(ocr.router)
app.include_router(calendar.router)


@app.exception_handler(SQLAlchemyError)
def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Storage failures that escaped the services: logged in full, reported generically."""
    logger.error(
        "Unhandled database error on %s %s [%s]: %s",
        request.method, request.url.path, getattr(request.state, "correlation_id", None), exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/")
def read_root():
    """A simple root endpoint to confirm the API is running."""
    return {"message": "Welcome to Legal Docket!"}


@app.get("/health", tags=["Health Check"])
def health_check(db: Session = Depends(get_db)):
    """
    Performs a health check on the API and its connected services.
    Verifies connection to the database and Redis.
    """
    status = {"api": "ok", "database": "error", "redis": "error"}

    try:
        db.execute(text("SELECT 1"))
        status["database"] = "ok"
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        raise HTTPException(status_code=503, detail="Could not connect to the database.")

    try:
        r = redis.Redis(host=settings.REDIS_HOST, port=settings.REDIS_PORT, decode_responses=True)
        r.ping()
        status["redis"] = "ok"
    except Exception as e:
        logger.error("Redis connection failed: %s", e)
        raise HTTPException(status_code=503, detail="Could not connect to Redis.")

    return status
