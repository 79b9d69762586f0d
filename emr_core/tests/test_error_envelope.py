# emr_core/tests/test_error_envelope.py
import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import RequestFactory
from rest_framework.exceptions import NotFound

from emr_core.common.api.exceptions import ConflictError, api_exception_handler, build_problem
from emr_core.tests.helpers import assert_problem


def test_build_problem_shape():
    req = RequestFactory().get("/x")
    req.request_id = "rid-00000001"

    body = build_problem(request=req, http_status=409, code="conflict", detail="Locked.")

    assert body == {
        "type": "about:blank",
        "title": "Conflict",
        "status": 409,
        "code": "conflict",
        "detail": "Locked.",
        "request_id": "rid-00000001",
    }


def test_request_id_generated_when_missing():
    body = build_problem(request=None, http_status=404, code="not_found")
    assert body["request_id"]
    assert "detail" not in body
    assert "issues" not in body


def test_handler_maps_domain_errors():
    req = RequestFactory().get("/x")
    ctx = {"request": req, "view": None}

    r = api_exception_handler(ConflictError("Note is finalized."), ctx)
    assert r.status_code == 409
    assert r.data["code"] == "conflict"
    assert r.data["detail"] == "Note is finalized."

    r = api_exception_handler(NotFound("Encounter not found."), ctx)
    assert r.status_code == 404
    assert r.data["title"] == "Not found"


def test_handler_converts_django_validation_error():
    ctx = {"request": RequestFactory().get("/x"), "view": None}
    r = api_exception_handler(DjangoValidationError({"end_time": ["Too early."]}), ctx)

    assert r.status_code == 400
    assert r.data["code"] == "validation_error"
    assert r.data["issues"] == {"end_time": ["Too early."]}


@pytest.mark.django_db
def test_unexpected_error_is_generic_500(api_client, monkeypatch, caplog):
    from emr_core.encounters.services import EncounterService

    def _explode(**kwargs):
        raise RuntimeError("connection reset by peer at 10.0.0.7")

    monkeypatch.setattr(EncounterService, "list", staticmethod(_explode))

    r = api_client.get("/api/v1/encounters/", HTTP_X_REQUEST_ID="trace-5000-0001")

    body = assert_problem(r, 500, "server_error")
    assert body["detail"] == "An unexpected error occurred."
    assert "10.0.0.7" not in r.content.decode()
    assert body["request_id"] == "trace-5000-0001"
    assert any(rec.getMessage() == "Unhandled API error" for rec in caplog.records)


@pytest.mark.django_db
def test_request_id_is_echoed(api_client):
    r = api_client.get("/api/v1/encounters/", HTTP_X_REQUEST_ID="client-abc-123")
    assert r["X-Request-ID"] == "client-abc-123"

    r = api_client.get("/api/v1/encounters/", HTTP_X_REQUEST_ID="bad id with spaces")
    assert r["X-Request-ID"] != "bad id with spaces"
    assert len(r["X-Request-ID"]) == 32
