from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.core.constants import MESSAGES
from app.core.exceptions import ExamError
from app.schemas.response import ErrorResponse, request_id_of
import logging
import uuid

logger = logging.getLogger(__name__)

def _get_error_code(status_code: int) -> str:
    code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_SERVER_ERROR",
        501: "NOT_IMPLEMENTED",
    }
    return code_map.get(status_code, f"HTTP_{status_code}")

def _request_id(request: Request) -> str:
    return request_id_of(request) or str(uuid.uuid4())

def _error_response(request: Request, request_id: str, status_code: int, code: str,
                    message: str, details=None, headers=None) -> JSONResponse:
    error_response = ErrorResponse.for_request(request, code, message, details=details, request_id=request_id)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(error_response), headers=headers)

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = _request_id(request)
    logger.warning(f"[{request_id}] Validation error: {exc.errors()}", extra={"request_id": request_id})
    return _error_response(
        request, request_id, 422, "VALIDATION_ERROR", "Request validation failed",
        details={"validation_errors": jsonable_encoder(exc.errors())}
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    request_id = _request_id(request)
    logger.warning(f"[{request_id}] HTTP {exc.status_code}: {exc.detail}", extra={"request_id": request_id})
    return _error_response(
        request, request_id, exc.status_code, _get_error_code(exc.status_code),
        exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        headers=getattr(exc, "headers", None)
    )

async def exam_exception_handler(request: Request, exc: ExamError):
    request_id = _request_id(request)
    if exc.status_code >= 500:
        logger.error(f"[{request_id}] {exc.code}: {exc.message}", extra={"request_id": request_id})
        message = MESSAGES["server_error"]
    else:
        logger.warning(f"[{request_id}] {exc.code}: {exc.message}", extra={"request_id": request_id})
        message = exc.message
    details = {"reason": exc.message, **exc.details} if settings.DEBUG else None
    return _error_response(request, request_id, exc.status_code, exc.code, message, details=details)

async def global_exception_handler(request: Request, exc: Exception):
    request_id = _request_id(request)
    logger.error(f"[{request_id}] Unhandled exception: {exc}", exc_info=True, extra={"request_id": request_id})
    details = {"error_type": type(exc).__name__, "error": str(exc)} if settings.DEBUG else None
    return _error_response(
        request, request_id, 500, "INTERNAL_SERVER_ERROR", MESSAGES["server_error"], details=details
    )
