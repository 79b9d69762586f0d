# emr_core/progress_notes/tests/test_note_lifecycle.py
import uuid

import pytest
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from emr_core.audit.models import AuditAction, AuditEntityType
from emr_core.common.api.exceptions import ConflictError
from emr_core.iam.actor import actor_for_user
from emr_core.progress_notes.models import NoteStatus, ProgressNote
from emr_core.progress_notes.services.lifecycle import NotePatch, create_draft, finalize, update_draft
from emr_core.tests.helpers import audit_rows, signature

pytestmark = pytest.mark.django_db


def test_create_draft_on_existing_encounter(actor, encounter, patient_id):
    note = create_draft(
        actor=actor,
        encounter_id=encounter.id,
        patient_id=patient_id,
        fields={"subjective": "Cough for 3 days"},
    )

    assert note.status == NoteStatus.DRAFT
    assert note.subjective == "Cough for 3 days"
    assert note.autosaved_at is None
    assert note.finalized_at is None
    rows = audit_rows(entity_type=AuditEntityType.PROGRESS_NOTE, entity_id=str(note.id))
    assert [r.action for r in rows] == [AuditAction.CREATE]


def test_create_draft_unknown_encounter_is_not_found(actor, patient_id):
    with pytest.raises(NotFound):
        create_draft(actor=actor, encounter_id=uuid.uuid4(), patient_id=patient_id)


def test_create_draft_patient_mismatch_is_conflict(actor, encounter):
    with pytest.raises(ConflictError):
        create_draft(actor=actor, encounter_id=encounter.id, patient_id=uuid.uuid4())
    assert not ProgressNote.objects.filter(encounter=encounter).exists()


def test_update_draft_overwrites_only_supplied_fields(actor, draft_note):
    update_draft(actor=actor, note_id=draft_note.id, patch=NotePatch(subjective="S1", plan="P1"))
    note = update_draft(actor=actor, note_id=draft_note.id, patch=NotePatch(plan="P2"))

    assert note.subjective == "S1"
    assert note.plan == "P2"
    assert note.autosaved_at is not None

    rows = audit_rows(entity_type=AuditEntityType.PROGRESS_NOTE, entity_id=str(draft_note.id), action=AuditAction.UPDATE)
    assert [r.metadata["changed_fields"] for r in rows] == [["plan", "subjective"], ["plan"]]


def test_scenario_c_autosave_sign_then_locked(actor, draft_note, settings):
    settings.EMR_SIGNATURE_MIN_LENGTH = 16

    note = update_draft(actor=actor, note_id=draft_note.id, patch=NotePatch(plan="Start varenicline"))
    assert note.plan == "Start varenicline"

    with pytest.raises(ValidationError) as exc:
        finalize(actor=actor, note_id=draft_note.id, signature_hash=signature(10))
    assert "signature_hash" in exc.value.detail

    signed = finalize(actor=actor, note_id=draft_note.id, signature_hash=signature(20))
    assert signed.status == NoteStatus.FINALIZED
    assert signed.signature_hash == signature(20)
    assert signed.finalized_at is not None

    with pytest.raises(ConflictError):
        update_draft(actor=actor, note_id=draft_note.id, patch=NotePatch(plan="changed"))

    draft_note.refresh_from_db()
    assert draft_note.plan == "Start varenicline"


def test_finalize_is_one_way(actor, draft_note):
    first = finalize(actor=actor, note_id=draft_note.id, signature_hash=signature(20))

    with pytest.raises(ConflictError):
        finalize(actor=actor, note_id=draft_note.id, signature_hash=signature(30))

    draft_note.refresh_from_db()
    assert draft_note.status == NoteStatus.FINALIZED
    assert draft_note.signature_hash == first.signature_hash
    assert draft_note.finalized_at == first.finalized_at


def test_finalize_records_audit(actor, draft_note, started_encounter):
    finalize(actor=actor, note_id=draft_note.id, signature_hash=signature())

    rows = audit_rows(entity_type=AuditEntityType.PROGRESS_NOTE, entity_id=str(draft_note.id))
    assert [r.action for r in rows] == [AuditAction.CREATE, AuditAction.UPDATE]
    signed = rows[-1].metadata
    assert signed["from_status"] == "draft"
    assert signed["to_status"] == "finalized"
    assert signed["encounter_id"] == str(started_encounter.encounter.id)
    assert signed["finalized_at"]
    # the signature itself is never copied into provenance
    assert "signature_hash" not in rows[0].metadata


def test_amended_note_is_locked(actor, draft_note):
    from django.utils import timezone

    ProgressNote.objects.filter(id=draft_note.id).update(
        status=NoteStatus.AMENDED, finalized_at=timezone.now(), signature_hash=signature()
    )

    with pytest.raises(ConflictError):
        update_draft(actor=actor, note_id=draft_note.id, patch=NotePatch(plan="x"))
    with pytest.raises(ConflictError):
        finalize(actor=actor, note_id=draft_note.id, signature_hash=signature())


def test_other_provider_cannot_edit(other_provider, draft_note):
    stranger = actor_for_user(other_provider)

    with pytest.raises(PermissionDenied):
        update_draft(actor=stranger, note_id=draft_note.id, patch=NotePatch(plan="x"))
    with pytest.raises(PermissionDenied):
        finalize(actor=stranger, note_id=draft_note.id, signature_hash=signature())


def test_admin_can_edit_any_note(admin_actor, draft_note):
    note = update_draft(actor=admin_actor, note_id=draft_note.id, patch=NotePatch(summary="reviewed by admin"))
    assert note.summary == "reviewed by admin"


def test_unknown_note_is_not_found(actor):
    with pytest.raises(NotFound):
        update_draft(actor=actor, note_id=uuid.uuid4(), patch=NotePatch(plan="x"))
    with pytest.raises(NotFound):
        finalize(actor=actor, note_id=uuid.uuid4(), signature_hash=signature())


def test_signature_constraint_enforced_by_database(draft_note):
    from django.db import IntegrityError, transaction
    from django.utils import timezone

    with pytest.raises(IntegrityError), transaction.atomic():
        ProgressNote.objects.filter(id=draft_note.id).update(
            status=NoteStatus.FINALIZED, finalized_at=timezone.now()
        )
