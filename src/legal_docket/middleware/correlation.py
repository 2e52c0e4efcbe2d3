"""
Correlation ID middleware.

Tags every request with an X-Correlation-ID (taken from the client or freshly
generated) and echoes it back, so log lines of one call can be grouped.
"""
import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

HEADER = "X-Correlation-ID"


class CorrelationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        logger.info("%s %s [%s]", request.method, request.url.path, correlation_id)

        response = await call_next(request)
        response.headers[HEADER] = correlation_id
        return response
