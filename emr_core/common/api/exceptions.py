# emr_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from http import HTTPStatus
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.serializers import as_serializer_error
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.views import set_rollback

logger = logging.getLogger(__name__)

PROBLEM_TYPE = "about:blank"

_PASSTHROUGH_HEADERS = ("WWW-Authenticate", "Retry-After", "Allow")

_TITLES = {
    400: "Validation failed",
    401: "Unauthenticated",
    403: "Forbidden",
    404: "Not found",
    409: "Conflict",
    500: "Unexpected error",
}


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    RequestIdMiddleware normally sets it; this covers direct view calls.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid:
        rid = uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def title_for(http_status: int) -> str:
    if http_status in _TITLES:
        return _TITLES[http_status]
    try:
        return HTTPStatus(http_status).phrase
    except ValueError:
        return "Error"


def build_problem(
    *,
    request=None,
    http_status: int,
    code: str,
    detail: str | None = None,
    issues: Any = None,
) -> dict[str, Any]:
    """
    Uniform error body:
      {type, title, status, code, detail?, issues?, request_id}
    """
    body: dict[str, Any] = {
        "type": PROBLEM_TYPE,
        "title": title_for(http_status),
        "status": http_status,
        "code": code,
    }
    if detail:
        body["detail"] = detail
    if issues:
        body["issues"] = issues
    body["request_id"] = ensure_request_id(request)
    return body


class ConflictError(APIException):
    """
    409 Conflict that still flows through the global exception handler.
    Raised for state-machine violations (locked note, double finalize,
    patient/encounter mismatch, re-entering in_progress).
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, (Http404, NotFound)):
        return "not_found"
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def _split_detail(exc: Exception, data: Any) -> tuple[str | None, Any]:
    """
    Returns (detail, issues).
    Validation errors keep their per-field structure in `issues`;
    everything else collapses to a single `detail` string.
    """
    if isinstance(exc, ValidationError):
        if isinstance(data, dict) and set(data) == {"detail"}:
            return str(data["detail"]), None
        if isinstance(data, list):
            return "Request validation failed.", {"non_field_errors": data}
        return "Request validation failed.", data

    if isinstance(data, dict) and "detail" in data:
        rest = {k: v for k, v in data.items() if k != "detail"}
        return str(data["detail"]), rest or None

    return None, data


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")

    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(detail=as_serializer_error(exc))

    response = drf_exception_handler(exc, context)

    # Truly unhandled error: log everything, reveal nothing.
    if response is None:
        view = context.get("view")
        logger.error(
            "Unhandled API error",
            exc_info=exc,
            extra={
                "view": view.__class__.__name__ if view is not None else None,
                "method": getattr(request, "method", None),
                "path": getattr(request, "path", None),
            },
        )
        set_rollback()
        return Response(
            build_problem(
                request=request,
                http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
                code="server_error",
                detail="An unexpected error occurred.",
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    detail, issues = _split_detail(exc, response.data)

    return Response(
        build_problem(
            request=request,
            http_status=http_status,
            code=_code_for(exc, http_status),
            detail=detail,
            issues=issues,
        ),
        status=http_status,
        headers={k: v for k, v in response.headers.items() if k in _PASSTHROUGH_HEADERS},
    )
