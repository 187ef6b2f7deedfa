from django.test import RequestFactory
from django.http import HttpResponse
from rest_framework.exceptions import ValidationError

from console_core.common.api.exceptions import (
    HasChildren,
    LimitExceeded,
    api_exception_handler,
)
from console_core.common.middleware import RequestIdMiddleware


def _handle(exc, request=None):
    return api_exception_handler(exc, {"request": request, "view": None})


def test_domain_error_renders_envelope_with_stable_code():
    resp = _handle(LimitExceeded("Workspace limit reached (2)."))

    assert resp.status_code == 409
    body = resp.data
    assert body["error"]["code"] == "limit_exceeded"
    assert body["error"]["message"] == "Workspace limit reached (2)."
    assert body["error"]["details"] is None
    assert body["error"]["request_id"]


def test_validation_error_keeps_field_details():
    resp = _handle(ValidationError({"name": "Name must be at least 2 characters."}))

    assert resp.status_code == 400
    assert resp.data["error"]["code"] == "validation_error"
    assert resp.data["error"]["message"] == "Request failed."
    assert "name" in resp.data["error"]["details"]


def test_has_children_default_message():
    resp = _handle(HasChildren())
    assert resp.data["error"]["code"] == "has_children"
    assert "dependent" in resp.data["error"]["message"]


def test_unhandled_error_becomes_server_error():
    resp = _handle(RuntimeError("boom"))
    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "server_error"


def test_request_id_middleware_echoes_incoming_header():
    rf = RequestFactory()
    req = rf.get("/api/v1/organizations/", HTTP_X_REQUEST_ID="abc123")

    mw = RequestIdMiddleware(get_response=lambda r: HttpResponse("ok"))
    resp = mw(req)

    assert req.request_id == "abc123"
    assert resp["X-Request-Id"] == "abc123"


def test_error_envelope_reuses_request_id():
    rf = RequestFactory()
    req = rf.get("/api/v1/organizations/")
    mw = RequestIdMiddleware(get_response=lambda r: HttpResponse("ok"))
    mw(req)

    resp = _handle(HasChildren(), request=req)
    assert resp.data["error"]["request_id"] == req.request_id
