# emr_core/audit/tests/test_audit_log.py
import logging

import pytest
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.utils import timezone

from emr_core.audit.metadata import CreateMetadata, Provenance, ViewMetadata
from emr_core.audit.models import LIST_SENTINEL, AuditAction, AuditEntityType, AuditEvent
from emr_core.audit.services import AuditService
from emr_core.encounters.models import Encounter
from emr_core.encounters.services import EncounterService
from emr_core.tests.helpers import assert_problem, audit_rows

pytestmark = pytest.mark.django_db

EVENTS = "/api/v1/audit/events/"


def test_record_takes_action_from_metadata(provider):
    rec = AuditService.record(
        actor_id=provider.id,
        entity_type=AuditEntityType.ENCOUNTER,
        entity_id="abc",
        metadata=CreateMetadata(status="scheduled", provenance=Provenance(ip="10.0.0.1", roles=("PROVIDER",))),
    )

    assert rec.action == AuditAction.CREATE
    assert rec.source == "api"
    assert rec.metadata["provenance"] == {"ip": "10.0.0.1", "roles": ["PROVIDER"], "request_id": None}

    row = AuditEvent.objects.get()
    assert rec.id == row.id
    assert (rec.actor_id, rec.entity_type, rec.entity_id) == (provider.id, "encounter", "abc")
    assert rec.occurred_at == row.occurred_at


def test_record_returns_none_when_the_write_fails(provider, monkeypatch):
    def _fail(**kwargs):
        raise DatabaseError("disk full")

    monkeypatch.setattr(AuditEvent.objects, "create", _fail)

    rec = AuditService.record(
        actor_id=provider.id, entity_type=AuditEntityType.ENCOUNTER, entity_id="abc", metadata=ViewMetadata()
    )
    assert rec is None


def test_records_are_immutable(provider):
    AuditService.record(
        actor_id=provider.id, entity_type=AuditEntityType.ENCOUNTER, entity_id="x", metadata=ViewMetadata()
    )
    row = AuditEvent.objects.get()

    row.entity_id = "tampered"
    with pytest.raises(ValidationError):
        row.save()
    with pytest.raises(ValidationError):
        row.delete()
    assert AuditEvent.objects.get().entity_id == "x"


def test_bulk_update_and_delete_are_refused(provider):
    AuditService.record(
        actor_id=provider.id, entity_type=AuditEntityType.ENCOUNTER, entity_id="x", metadata=ViewMetadata()
    )

    with pytest.raises(ValidationError):
        AuditEvent.objects.filter(entity_id="x").update(entity_id="tampered")
    with pytest.raises(ValidationError):
        AuditEvent.objects.all().delete()
    assert AuditEvent.objects.filter(entity_id="x").count() == 1


def test_audit_failure_does_not_undo_the_action(actor, provider, patient_id, monkeypatch, caplog):
    def _fail(**kwargs):
        raise DatabaseError("audit table locked")

    monkeypatch.setattr(AuditEvent.objects, "create", _fail)

    with caplog.at_level(logging.ERROR, logger="emr_core.audit"):
        outcome = EncounterService.create(
            actor=actor,
            patient_id=patient_id,
            provider_id=provider.id,
            type="consult",
            start_time=timezone.now(),
        )

    assert Encounter.objects.filter(id=outcome.encounter.id).exists()
    assert any(r.getMessage() == "Audit write failed" for r in caplog.records)


def test_view_metadata_records_filters_not_free_text():
    meta = ViewMetadata.for_query({"status": "draft", "keywords": "chest pain"}, page=1, page_size=20, total=3)
    data = meta.as_dict()

    assert data["filters"] == {"keywords": True, "status": "draft"}
    assert "chest pain" not in str(data)


def test_provenance_from_request_prefers_forwarded_for(rf, actor):
    request = rf.get("/", HTTP_X_FORWARDED_FOR="203.0.113.9, 10.0.0.2", REMOTE_ADDR="10.0.0.2")
    request.request_id = "req-12345678"

    prov = Provenance.from_request(request, actor)
    assert prov.ip == "203.0.113.9"
    assert prov.roles == ("PROVIDER",)
    assert prov.request_id == "req-12345678"


def test_http_requests_carry_provenance(api_client, encounter):
    api_client.get(f"/api/v1/encounters/{encounter.id}/", HTTP_X_REQUEST_ID="trace-0001-abcd")

    row = audit_rows(entity_type=AuditEntityType.ENCOUNTER, action=AuditAction.VIEW)[0]
    assert row.metadata["provenance"]["request_id"] == "trace-0001-abcd"
    assert row.metadata["provenance"]["roles"] == ["PROVIDER"]
    assert row.metadata["provenance"]["ip"] == "127.0.0.1"


def test_list_events_filters_and_is_itself_audited(client_for, admin_user, encounter):
    c = client_for(admin_user)

    r = c.get(EVENTS, {"entity_type": "encounter", "entity_id": str(encounter.id)})
    assert r.status_code == 200, r.data
    assert r.data["total"] == 1
    item = r.data["items"][0]
    assert item["action"] == "create"
    assert item["timestamp"]

    browse = audit_rows(entity_type=AuditEntityType.AUDIT_EVENT, entity_id=LIST_SENTINEL)
    assert len(browse) == 1
    assert browse[0].actor_id == admin_user.id


def test_list_events_rejects_bad_action(client_for, admin_user):
    r = client_for(admin_user).get(EVENTS, {"action": "delete"})
    body = assert_problem(r, 400, "validation_error")
    assert "action" in body["issues"]
