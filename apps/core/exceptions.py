"""
Workflow error taxonomy and the API exception handler.

Every failure inside the engine is raised synchronously to the caller as
one of the NewsroomException subclasses below; nothing retries on its
own. The handler renders them, and anything DRF or Django raises, as

    {"error": {"code", "message", ["field"], ["details"]}, "request_id"}
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    INVALID_TRANSITION = "INVALID_TRANSITION"
    FORBIDDEN = "FORBIDDEN"
    STALE_STATE = "STALE_STATE"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_TERMINAL = "ALREADY_TERMINAL"

    # Raised by DRF rather than the workflow
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RATE_LIMITED = "RATE_LIMITED"

    INTERNAL_ERROR = "INTERNAL_ERROR"


# Codes for DRF's own exceptions, keyed by the status DRF picked.
_DRF_STATUS_CODES = {
    status.HTTP_401_UNAUTHORIZED: ErrorCode.AUTHENTICATION_REQUIRED,
    status.HTTP_403_FORBIDDEN: ErrorCode.PERMISSION_DENIED,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_429_TOO_MANY_REQUESTS: ErrorCode.RATE_LIMITED,
}


@dataclass
class ErrorPayload:
    """One rendered error, ready to become a response body."""
    code: ErrorCode
    message: str
    request_id: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        error = {"code": ErrorCode(self.code).value, "message": self.message}
        if self.field:
            error["field"] = self.field
        if self.details:
            error["details"] = self.details
        return {"error": error, "request_id": self.request_id}

    def to_response(self, status_code: int) -> Response:
        return Response(self.to_dict(), status=status_code)


class NewsroomException(APIException):
    """
    Base class for workflow failures.

    Subclasses pin the HTTP status and error code; ``field`` names the
    offending input and ``details`` carries machine-readable context
    (allowed outcomes, current stage and so on).
    """

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.INTERNAL_ERROR
    default_detail = "An error occurred"
    retryable = False

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_detail
        self.error_code = code or self.error_code
        self.field = field
        self.error_details = details or {}
        if status_code:
            self.status_code = status_code
        super().__init__(detail=self.message)

    def get_error_response(self, request_id: Optional[str] = None) -> ErrorPayload:
        details = dict(self.error_details)
        if self.retryable:
            details["retryable"] = True
        return ErrorPayload(
            code=self.error_code,
            message=self.message,
            request_id=request_id or str(uuid.uuid4()),
            field=self.field,
            details=details or None,
        )


class InvalidTransitionError(NewsroomException):
    """Requested transition does not leave from the item's current stage."""
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.INVALID_TRANSITION
    default_detail = "Transition is not valid from the current state"


class ForbiddenError(NewsroomException):
    """Actor's role lacks authority for the operation."""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = ErrorCode.FORBIDDEN
    default_detail = "You are not allowed to perform this action"


class StaleStateError(NewsroomException):
    """Optimistic check-and-set lost against a concurrent writer."""
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.STALE_STATE
    default_detail = "The item changed while you were working on it; reload and retry"
    retryable = True


class ValidationFailedError(NewsroomException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.VALIDATION_FAILED
    default_detail = "Validation failed"


class NotFoundError(NewsroomException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = ErrorCode.NOT_FOUND
    default_detail = "Resource not found"


class AlreadyTerminalError(NewsroomException):
    """Operation on a completed, cancelled or published entity."""
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.ALREADY_TERMINAL
    default_detail = "This item is already in a terminal state"


# =============================================================================
# Exception Handler
# =============================================================================

def get_request_id(request) -> str:
    return getattr(request, 'request_id', None) or str(uuid.uuid4())


def _from_django_validation(exc: DjangoValidationError, request_id: str) -> ErrorPayload:
    if hasattr(exc, 'message_dict'):
        return ErrorPayload(ErrorCode.VALIDATION_FAILED, "Validation failed", request_id,
                            details=exc.message_dict)
    messages = exc.messages
    return ErrorPayload(
        ErrorCode.VALIDATION_FAILED,
        messages[0] if messages else "Validation failed",
        request_id,
        details={"errors": messages},
    )


def _from_drf_response(response: Response, request_id: str) -> ErrorPayload:
    if response.status_code >= 500:
        code = ErrorCode.INTERNAL_ERROR
    else:
        code = _DRF_STATUS_CODES.get(response.status_code, ErrorCode.VALIDATION_FAILED)

    data = response.data
    if isinstance(data, dict) and 'detail' in data:
        return ErrorPayload(code, str(data['detail']), request_id)
    if isinstance(data, dict):
        # Serializer errors keyed by field name
        return ErrorPayload(code, "Validation failed", request_id, details=data)
    if isinstance(data, list):
        return ErrorPayload(code, str(data[0]) if data else "Error", request_id,
                            details={"errors": data})
    return ErrorPayload(code, str(data), request_id)


def newsroom_exception_handler(exc, context):
    """DRF ``EXCEPTION_HANDLER``: render every failure in the shared error shape."""
    from apps.core.metrics import increment_workflow_error

    request = context.get('request')
    request_id = get_request_id(request)

    if isinstance(exc, NewsroomException):
        increment_workflow_error(exc.error_code.value)
        logger.warning(
            f"Workflow error {exc.error_code.value}: {exc.message}",
            extra={"request_id": request_id, "field": exc.field, "status_code": exc.status_code},
        )
        return exc.get_error_response(request_id).to_response(exc.status_code)

    if isinstance(exc, DjangoValidationError):
        return _from_django_validation(exc, request_id).to_response(status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, Http404):
        payload = ErrorPayload(ErrorCode.NOT_FOUND, str(exc) or "Resource not found", request_id)
        return payload.to_response(status.HTTP_404_NOT_FOUND)

    response = drf_exception_handler(exc, context)
    if response is not None:
        return _from_drf_response(response, request_id).to_response(response.status_code)

    logger.exception(f"Unhandled {type(exc).__name__}", extra={"request_id": request_id})
    payload = ErrorPayload(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred", request_id)
    return payload.to_response(status.HTTP_500_INTERNAL_SERVER_ERROR)
