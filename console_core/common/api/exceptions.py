# console_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.core.exceptions import ObjectDoesNotExist
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated, NotFound, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    Safe to call from middleware and DRF exception handler.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid:
        rid = uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    Canonical error envelope.
    Reusable from Django middleware (JsonResponse) and DRF (Response).
    """
    rid = ensure_request_id(request)
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": rid,
        }
    }


class DomainError(APIException):
    """
    Base for business-rule failures detected before a mutation is issued.
    Subclasses only pick a status + stable code.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class LimitExceeded(DomainError):
    """An organization resource cap (workspaces, facilities, users) is reached."""
    default_detail = "Organization limit reached."
    default_code = "limit_exceeded"


class InvalidHierarchy(DomainError):
    """Structurally disallowed parent/child relationship."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Invalid hierarchy."
    default_code = "invalid_hierarchy"


class InvalidScope(DomainError):
    """A role was paired with an organizational unit it cannot attach to."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Invalid scope for this role."
    default_code = "invalid_scope"


class HasChildren(DomainError):
    default_detail = "Cannot delete: dependent records exist."
    default_code = "has_children"


class HasAssignedUsers(DomainError):
    default_detail = "Cannot delete: users are still assigned."
    default_code = "has_assigned_users"


class DuplicateUser(DomainError):
    default_detail = "A user with this email already exists."
    default_code = "duplicate_user"


class ProtectedResource(DomainError):
    """System defaults (default categories, the core module) cannot be changed this way."""
    default_detail = "This record is protected."
    default_code = "protected_resource"


def _model_label(exc: ObjectDoesNotExist) -> str:
    # Model.DoesNotExist carries no model reference; its qualname does ("Workspace.DoesNotExist")
    name = type(exc).__qualname__.split(".")[0]
    return name if name != "ObjectDoesNotExist" else "Object"


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")

    # services use Model.objects.get(); a missing row is a 404, not a crash
    if isinstance(exc, ObjectDoesNotExist):
        exc = NotFound(f"{_model_label(exc)} not found.")

    response = drf_exception_handler(exc, context)

    # Truly unhandled error
    if response is None:
        logger.exception("unhandled error request_id=%s", ensure_request_id(request))
        return Response(
            build_error_envelope(
                request=request,
                code="server_error",
                message="Unexpected server error.",
                details=None,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)

    data = response.data

    # Message + details rules:
    # 1) {"detail": "..."} only -> message=detail, details=None
    # 2) {"detail": "...", ...} -> message=detail, details={...without detail}
    # 3) otherwise -> message="Request failed.", details=data
    message = "Request failed."
    details = data

    if isinstance(data, dict) and "detail" in data:
        message = str(data.get("detail"))
        rest = {k: v for k, v in data.items() if k != "detail"}
        details = rest or None
    elif isinstance(data, list) and len(data) == 1:
        message = str(data[0])
        details = None

    return Response(
        build_error_envelope(
            request=request,
            code=code,
            message=message,
            details=details,
        ),
        status=http_status,
        headers=response.headers,
    )
