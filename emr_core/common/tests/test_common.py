# emr_core/common/tests/test_common.py
import json
import logging
from dataclasses import dataclass
from typing import Any

import pytest
from django.contrib.auth.models import Group
from django.core.management import call_command

from emr_core.common.events import publish, subscribe, unsubscribe
from emr_core.common.logging import REDACTED, SanitizedJSONFormatter, sanitize_dict
from emr_core.common.patch import MISSING, Patch
from emr_core.common.permissions import ALL_ROLES


@dataclass(frozen=True)
class _SamplePatch(Patch):
    title: Any = MISSING
    body: Any = MISSING


def test_patch_tracks_presence_and_explicit_none():
    p = _SamplePatch.from_data({"body": None})

    assert not p.is_present("title")
    assert p.is_present("body")
    assert p.changes() == {"body": None}
    assert p.without("body").changes() == {}


def test_patch_rejects_unknown_fields():
    with pytest.raises(TypeError):
        _SamplePatch.from_data({"author": "x"})


def test_publish_isolates_failing_handlers(caplog):
    seen = []

    def ok(payload):
        seen.append(payload["n"])

    def broken(payload):
        raise ValueError("nope")

    subscribe("sample.event")(broken)
    subscribe("sample.event")(ok)
    try:
        with caplog.at_level(logging.ERROR, logger="emr_core.common.events"):
            delivered = publish("sample.event", {"n": 1})
    finally:
        unsubscribe("sample.event", broken)
        unsubscribe("sample.event", ok)

    assert delivered == 1
    assert seen == [1]
    assert any(r.getMessage() == "Event handler failed" for r in caplog.records)


def test_sanitize_dict_redacts_clinical_text():
    data = {"entity_id": "n1", "plan": "Start varenicline", "nested": [{"summary": "x", "page": 2}]}

    assert sanitize_dict(data) == {
        "entity_id": "n1",
        "plan": REDACTED,
        "nested": [{"summary": REDACTED, "page": 2}],
    }


def test_json_formatter_redacts_extras():
    record = logging.LogRecord("emr_core.test", logging.INFO, __file__, 1, "Domain event: %s", ("x",), None)
    record.subjective = "patient reports chest pain"
    record.entity_id = "abc"
    record.request_id = "rid-1"

    out = json.loads(SanitizedJSONFormatter().format(record))

    assert out["message"] == "Domain event: x"
    assert out["subjective"] == REDACTED
    assert out["entity_id"] == "abc"
    assert out["request_id"] == "rid-1"


@pytest.mark.django_db
def test_ensure_roles_is_idempotent(capsys):
    call_command("ensure_roles")
    call_command("ensure_roles", "--verbose-capabilities")

    out = capsys.readouterr().out
    assert "Newly created: 6" in out
    assert "Newly created: 0" in out
    assert "PROVIDER:" in out
    assert set(Group.objects.values_list("name", flat=True)) == set(ALL_ROLES)


@pytest.mark.django_db
def test_schema_documents_only_versioned_routes(anon_client):
    r = anon_client.get("/api/schema/", {"format": "json"})
    assert r.status_code == 200

    paths = json.loads(r.content)["paths"]
    assert "/api/v1/encounters/" in paths
    assert "/api/v1/investigations/results/{result_id}/review/" in paths
    assert not any(p.startswith("/api/encounters") for p in paths)
