# emr_core/investigations/tests/test_orders_results_api.py
import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from emr_core.audit.models import LIST_SENTINEL, AuditAction, AuditEntityType
from emr_core.investigations.services import InvestigationService
from emr_core.tests.helpers import assert_problem, audit_rows

pytestmark = pytest.mark.django_db

ORDERS = "/api/v1/investigations/orders/"
RESULTS = "/api/v1/investigations/results/"


def test_create_order(api_client, provider, patient_id):
    r = api_client.post(
        ORDERS,
        {"patient_id": str(patient_id), "provider_id": provider.id, "name": "Lipid panel", "code": "LIPID"},
        format="json",
    )

    assert r.status_code == 201, r.data
    order = r.data["order"]
    assert order["status"] == "ordered"
    assert order["ordered_at"]
    assert audit_rows(entity_type=AuditEntityType.INVESTIGATION_ORDER, entity_id=order["id"], action=AuditAction.CREATE)


def test_list_orders_filters(api_client, investigation_order, patient_id):
    r = api_client.get(ORDERS, {"patient_id": str(patient_id)})
    assert r.status_code == 200, r.data
    assert r.data["total"] == 1

    r = api_client.get(ORDERS, {"patient_id": str(uuid.uuid4())})
    assert r.data["total"] == 0


def test_create_result_requires_name_or_code(api_client, investigation_order):
    r = api_client.post(RESULTS, {"order_id": str(investigation_order.id), "value": "5"}, format="json")
    body = assert_problem(r, 400, "validation_error")
    assert "name" in body["issues"]


def test_create_result_unknown_order_is_404(api_client):
    r = api_client.post(RESULTS, {"order_id": str(uuid.uuid4()), "name": "Glucose"}, format="json")
    assert_problem(r, 404, "not_found")


def test_create_result(api_client, investigation_order):
    r = api_client.post(
        RESULTS,
        {
            "order_id": str(investigation_order.id),
            "code": "GLU",
            "value": "7.8",
            "units": "mmol/L",
            "interpretation": "abnormal",
        },
        format="json",
    )

    assert r.status_code == 201, r.data
    res = r.data["result"]
    assert res["reviewed"] is False
    assert res["reviewer_id"] is None
    assert res["order_id"] == str(investigation_order.id)


def test_list_results_filters_and_order(api_client, actor, investigation_order, patient_id):
    now = timezone.now()
    for name, hours, interp in (("Older", 5, "normal"), ("Newest", 1, "critical"), ("Middle", 3, "normal")):
        InvestigationService.create_result(
            actor=actor,
            order_id=investigation_order.id,
            fields={"name": name, "interpretation": interp, "observed_at": now - timedelta(hours=hours)},
        )

    r = api_client.get(RESULTS, {"patient_id": str(patient_id)})
    assert r.status_code == 200, r.data
    assert [i["name"] for i in r.data["items"]] == ["Newest", "Middle", "Older"]

    r = api_client.get(RESULTS, {"interpretation": "critical"})
    assert [i["name"] for i in r.data["items"]] == ["Newest"]

    r = api_client.get(RESULTS, {"keywords": "midd"})
    assert [i["name"] for i in r.data["items"]] == ["Middle"]

    r = api_client.get(RESULTS, {"reviewed": "false", "page_size": 2})
    assert r.data["total"] == 3
    assert len(r.data["items"]) == 2


def test_list_results_aggregate_audit(api_client, investigation_result):
    api_client.get(RESULTS, {"reviewed": "false"})

    rows = audit_rows(entity_type=AuditEntityType.INVESTIGATION_RESULT, action=AuditAction.VIEW)
    assert len(rows) == 1
    assert rows[0].entity_id == LIST_SENTINEL
    assert rows[0].metadata["filters"] == {"reviewed": False}


def test_update_order_status_and_notes(api_client, investigation_order):
    r = api_client.put(
        ORDERS,
        {"id": str(investigation_order.id), "status": "completed", "notes": "Drawn 08:10"},
        format="json",
    )

    assert r.status_code == 200, r.data
    assert r.data["order"]["status"] == "completed"
    assert r.data["order"]["notes"] == "Drawn 08:10"
    assert r.data["order"]["name"] == "Complete blood count"

    rows = audit_rows(
        entity_type=AuditEntityType.INVESTIGATION_ORDER, entity_id=str(investigation_order.id), action=AuditAction.UPDATE
    )
    assert len(rows) == 1
    assert rows[0].metadata["changed_fields"] == ["notes", "status"]
    assert (rows[0].metadata["from_status"], rows[0].metadata["to_status"]) == ("ordered", "completed")


def test_update_unknown_order_is_404(api_client):
    r = api_client.put(ORDERS, {"id": str(uuid.uuid4()), "status": "cancelled"}, format="json")
    assert_problem(r, 404, "not_found")


def test_update_result_fields(api_client, investigation_result):
    r = api_client.put(
        RESULTS,
        {"id": str(investigation_result.id), "value": "9.1", "interpretation": "abnormal"},
        format="json",
    )

    assert r.status_code == 200, r.data
    res = r.data["result"]
    assert res["value"] == "9.1"
    assert res["interpretation"] == "abnormal"
    assert res["units"] == "g/dL"

    rows = audit_rows(
        entity_type=AuditEntityType.INVESTIGATION_RESULT, entity_id=str(investigation_result.id), action=AuditAction.UPDATE
    )
    assert rows[0].metadata["changed_fields"] == ["interpretation", "value"]


def test_update_result_leaves_review_state_alone(api_client, actor, provider, investigation_result):
    InvestigationService.review(actor=actor, result_id=investigation_result.id)

    r = api_client.put(
        RESULTS,
        {"id": str(investigation_result.id), "value": "12.0", "reviewed": False, "reviewer_id": None},
        format="json",
    )

    assert r.status_code == 200, r.data
    res = r.data["result"]
    assert res["value"] == "12.0"
    assert res["reviewed"] is True
    assert res["reviewer_id"] == provider.id
    assert res["reviewed_at"] is not None


def test_update_result_must_keep_name_or_code(api_client, investigation_result):
    r = api_client.put(RESULTS, {"id": str(investigation_result.id), "name": None, "code": None}, format="json")
    body = assert_problem(r, 400, "validation_error")
    assert "name" in body["issues"]

    investigation_result.refresh_from_db()
    assert investigation_result.name == "Hemoglobin"


def test_update_requires_investigation_update(client_for, clerk, investigation_result, investigation_order):
    client = client_for(clerk)
    assert_problem(client.put(RESULTS, {"id": str(investigation_result.id), "value": "1"}, format="json"), 403, "permission_denied")
    assert_problem(client.put(ORDERS, {"id": str(investigation_order.id), "notes": "x"}, format="json"), 403, "permission_denied")


def test_list_orders_carries_last_result(api_client, actor, provider, investigation_order, patient_id):
    now = timezone.now()
    InvestigationService.create_result(
        actor=actor, order_id=investigation_order.id, fields={"name": "Early", "observed_at": now - timedelta(hours=4)}
    )
    latest = InvestigationService.create_result(
        actor=actor,
        order_id=investigation_order.id,
        fields={"name": "Latest", "value": "4.2", "units": "mmol/L", "interpretation": "normal", "observed_at": now},
    )
    InvestigationService.review(actor=actor, result_id=latest.id)
    empty = InvestigationService.create_order(actor=actor, patient_id=patient_id, provider_id=provider.id, name="Urinalysis")

    r = api_client.get(ORDERS, {"patient_id": str(patient_id)})
    assert r.status_code == 200, r.data

    by_id = {item["id"]: item for item in r.data["items"]}
    last = by_id[str(investigation_order.id)]["last_result"]
    assert last["id"] == str(latest.id)
    assert last["name"] == "Latest"
    assert (last["value"], last["units"], last["interpretation"]) == ("4.2", "mmol/L", "normal")
    assert last["reviewed"] is True
    assert last["reviewed_at"] is not None
    assert by_id[str(empty.id)]["last_result"] is None
