# middleware/request_id.py
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from cohort_scheduler.core.logging import logger


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id (reusing the caller's X-Request-ID) and log its outcome."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({duration:.0f} ms)",
            extra={"request_id": request_id, "duration": duration}
        )
        response.headers["X-Request-ID"] = request_id
        return response
