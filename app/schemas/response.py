from datetime import datetime, timezone
from pydantic import BaseModel, Field
from starlette.requests import Request
from typing import Generic, TypeVar, Optional, Any, Dict

DataType = TypeVar("DataType")

REQUEST_ID_HEADER = "X-Request-ID"


def request_id_of(request: Request) -> Optional[str]:
    """The id the logging middleware stored, or the caller's ``X-Request-ID``."""
    return getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER)


class APIResponse(BaseModel, Generic[DataType]):
    """Envelope for every exam API success response."""
    message: str = Field(..., description="A human-readable message about the response.")
    data: Optional[DataType] = Field(None, description="The actual data returned by the API, if any.")
    request_id: Optional[str] = Field(None, description="Echo of the X-Request-ID the request was logged under")

class ErrorDetail(BaseModel):
    code: str = Field(..., description="Error code for client handling, e.g. INSUFFICIENT_QUESTION_POOL")
    message: str = Field(..., description="Message safe to show to the candidate")
    details: Optional[Dict[str, Any]] = Field(None, description="Internal context, only populated in debug mode")

class ErrorResponse(BaseModel):
    error: ErrorDetail = Field(..., description="Error details")
    timestamp: str = Field(..., description="ISO 8601 timestamp of error")
    path: str = Field(..., description="Request path that caused the error")
    request_id: Optional[str] = Field(None, description="Echo of the X-Request-ID the request was logged under")

    @classmethod
    def for_request(cls, request: Request, code: str, message: str,
                    details: Optional[Dict[str, Any]] = None,
                    request_id: Optional[str] = None) -> "ErrorResponse":
        return cls(
            error=ErrorDetail(code=code, message=message, details=details),
            timestamp=datetime.now(timezone.utc).isoformat(),
            path=str(request.url.path),
            request_id=request_id or request_id_of(request),
        )
