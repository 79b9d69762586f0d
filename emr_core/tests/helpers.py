# emr_core/tests/helpers.py
from __future__ import annotations

from django.conf import settings


def signature(length: int | None = None) -> str:
    """A signature hash of exactly `length` chars (default: the minimum accepted)."""
    n = length if length is not None else settings.EMR_SIGNATURE_MIN_LENGTH
    return ("a1b2c3d4e5f6" * (n // 12 + 1))[:n]


def audit_rows(**filters):
    from emr_core.audit.models import AuditEvent

    return list(AuditEvent.objects.filter(**filters).order_by("occurred_at"))


def assert_problem(resp, status_code: int, code: str | None = None) -> dict:
    """Checks the uniform error envelope and returns the body."""
    assert resp.status_code == status_code, getattr(resp, "data", resp.content)
    body = resp.json()
    for key in ("type", "title", "status", "code", "request_id"):
        assert key in body, body
    assert body["status"] == status_code
    if code is not None:
        assert body["code"] == code, body
    return body
