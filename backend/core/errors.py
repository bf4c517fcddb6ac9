from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ErrorCode:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    INTERNAL = "INTERNAL"


STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.PAYMENT_FAILED: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state of the resource."
    default_code = "conflict"


@dataclass(frozen=True)
class ServiceResult:
    """
    Outcome of a service call.

    Expected business failures (duplicate booking, full session, ...) are
    returned as failed results rather than raised, so views can map them to
    a specific code and status without try/except plumbing.
    """

    ok: bool
    data: Any = None
    code: Optional[str] = None
    message: str = ""
    details: dict = field(default_factory=dict)

    @classmethod
    def success(cls, data: Any = None, **details) -> "ServiceResult":
        return cls(ok=True, data=data, details=details)

    @classmethod
    def failure(cls, code: str, message: str, **details) -> "ServiceResult":
        return cls(ok=False, code=code, message=message, details=details)

    @property
    def status_code(self) -> int:
        if self.ok:
            return status.HTTP_200_OK
        return STATUS_BY_CODE.get(self.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(code: str, message: str, status_code: int | None = None, **extra) -> Response:
    payload = {"code": code, "detail": message}
    payload.update(extra)
    return Response(payload, status=status_code or STATUS_BY_CODE[code])


def result_response(result: ServiceResult, serializer_class=None, *, success_status=status.HTTP_200_OK, context=None):
    """Render a ServiceResult: the serialized data on success, the error envelope otherwise."""

    if not result.ok:
        return error_response(result.code, result.message, result.status_code, **result.details)
    if serializer_class is None or result.data is None:
        return Response(status=success_status)
    return Response(serializer_class(result.data, context=context or {}).data, status=success_status)


def _code_for_exception(exc) -> str:
    if isinstance(exc, exceptions.ValidationError):
        return ErrorCode.VALIDATION_ERROR
    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        return ErrorCode.UNAUTHORIZED
    if isinstance(exc, exceptions.PermissionDenied):
        return ErrorCode.FORBIDDEN
    if isinstance(exc, (exceptions.NotFound, Http404)):
        return ErrorCode.NOT_FOUND
    if isinstance(exc, exceptions.APIException):
        return exc.default_code.upper()
    return ErrorCode.INTERNAL


def api_exception_handler(exc, context):
    """DRF's default handler, with a machine-readable ``code`` on every error body."""

    response = exception_handler(exc, context)
    if response is None:
        return None

    code = _code_for_exception(exc)
    if isinstance(response.data, dict) and "detail" in response.data:
        response.data["code"] = code
    else:
        response.data = {
            "code": code,
            "detail": "Invalid input.",
            "errors": response.data,
        }
    return response


def internal_on_database_error(func):
    """Turn an unexpected data-store failure in a service into an INTERNAL result."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError:
            logger.exception("%s failed with a database error (args=%r)", func.__name__, args[:1])
            return ServiceResult.failure(ErrorCode.INTERNAL, "Something went wrong. Please try again.")

    return wrapper
