import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.schemas.response import REQUEST_ID_HEADER

logger = logging.getLogger(__name__)

# polled by load balancers; only logged at DEBUG
QUIET_PATHS = {"/health"}

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs its outcome and duration.

    A caller-supplied ``X-Request-ID`` is kept so exam clients can match
    their own logs against ours; otherwise a fresh id is minted.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        started = time.perf_counter()
        method, path = request.method, request.url.path

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"[{request_id}] {method} {path} - ERROR",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "error": str(exc)
                }
            )
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        status_code = response.status_code

        if status_code >= 400:
            log_level = logging.WARNING
        elif path in QUIET_PATHS:
            log_level = logging.DEBUG
        else:
            log_level = logging.INFO
        logger.log(
            log_level,
            f"[{request_id}] {method} {path} - {status_code} ({duration_ms}ms)",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
            }
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
