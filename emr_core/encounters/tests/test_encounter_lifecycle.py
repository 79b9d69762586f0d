# emr_core/encounters/tests/test_encounter_lifecycle.py
import pytest
from django.utils import timezone

from emr_core.appointments.models import AppointmentStatus
from emr_core.audit.models import AuditAction, AuditEntityType
from emr_core.common.api.exceptions import ConflictError
from emr_core.encounters.models import Encounter, EncounterStatus
from emr_core.encounters.services import EncounterPatch, EncounterService
from emr_core.progress_notes.models import NoteStatus, ProgressNote
from emr_core.tests.helpers import audit_rows

pytestmark = pytest.mark.django_db


def _create(actor, provider, patient_id, **kwargs):
    return EncounterService.create(
        actor=actor,
        patient_id=patient_id,
        provider_id=provider.id,
        type="follow-up",
        start_time=timezone.now(),
        **kwargs,
    )


@pytest.mark.parametrize(
    "initial_status",
    [EncounterStatus.SCHEDULED, EncounterStatus.COMPLETED, EncounterStatus.CANCELLED],
)
def test_create_without_in_progress_makes_no_note(actor, provider, patient_id, initial_status):
    outcome = _create(actor, provider, patient_id, status=initial_status)

    assert outcome.draft_note_id is None
    assert outcome.encounter.started_at is None
    assert not ProgressNote.objects.filter(encounter=outcome.encounter).exists()


def test_create_in_progress_makes_exactly_one_draft(actor, provider, patient_id):
    outcome = _create(actor, provider, patient_id, status=EncounterStatus.IN_PROGRESS)

    notes = list(ProgressNote.objects.filter(encounter=outcome.encounter))
    assert len(notes) == 1
    note = notes[0]
    assert note.id == outcome.draft_note_id
    assert note.status == NoteStatus.DRAFT
    assert note.author_id == provider.id
    assert note.patient_id == patient_id
    assert outcome.encounter.started_at is not None


def test_create_in_progress_writes_two_create_records(actor, provider, patient_id):
    outcome = _create(actor, provider, patient_id, status=EncounterStatus.IN_PROGRESS)

    enc_rows = audit_rows(entity_type=AuditEntityType.ENCOUNTER, entity_id=str(outcome.encounter.id))
    note_rows = audit_rows(entity_type=AuditEntityType.PROGRESS_NOTE, entity_id=str(outcome.draft_note_id))

    assert [r.action for r in enc_rows] == [AuditAction.CREATE]
    assert [r.action for r in note_rows] == [AuditAction.CREATE]
    assert note_rows[0].metadata["trigger"] == "encounter_started"
    assert note_rows[0].metadata["related_ids"]["encounter_id"] == str(outcome.encounter.id)


def test_scenario_a_scheduled_create_leaves_confirmed_appointment(actor, provider, patient_id, appointment):
    appointment.status = AppointmentStatus.CONFIRMED
    appointment.save()

    outcome = _create(actor, provider, patient_id, appointment_id=appointment.id)

    assert outcome.draft_note_id is None
    appointment.refresh_from_db()
    assert appointment.status == AppointmentStatus.CONFIRMED


def test_scenario_b_update_to_in_progress_starts_once(actor, provider, patient_id, appointment):
    appointment.status = AppointmentStatus.CONFIRMED
    appointment.save()
    enc = _create(actor, provider, patient_id, appointment_id=appointment.id).encounter

    first = EncounterService.update(
        actor=actor,
        encounter_id=enc.id,
        patch=EncounterPatch(status=EncounterStatus.IN_PROGRESS),
    )
    assert first.draft_note_id is not None
    assert first.encounter.status == EncounterStatus.IN_PROGRESS
    appointment.refresh_from_db()
    assert appointment.status == AppointmentStatus.IN_PROGRESS

    # repeat: no second draft, no error
    second = EncounterService.update(
        actor=actor,
        encounter_id=enc.id,
        patch=EncounterPatch(status=EncounterStatus.IN_PROGRESS),
    )
    assert second.draft_note_id is None
    assert ProgressNote.objects.filter(encounter_id=enc.id).count() == 1


def test_update_records_transition_in_audit(actor, encounter):
    outcome = EncounterService.update(
        actor=actor,
        encounter_id=encounter.id,
        patch=EncounterPatch(status=EncounterStatus.IN_PROGRESS, location="Room 4"),
    )

    rows = audit_rows(entity_type=AuditEntityType.ENCOUNTER, entity_id=str(encounter.id), action=AuditAction.UPDATE)
    assert len(rows) == 1
    meta = rows[0].metadata
    assert meta["transitioned"] is True
    assert meta["from_status"] == EncounterStatus.SCHEDULED
    assert meta["to_status"] == EncounterStatus.IN_PROGRESS
    assert meta["draft_note_id"] == str(outcome.draft_note_id)
    assert sorted(meta["changed_fields"]) == ["location", "status"]


def test_reentering_in_progress_is_conflict(actor, encounter):
    EncounterService.update(
        actor=actor, encounter_id=encounter.id, patch=EncounterPatch(status=EncounterStatus.IN_PROGRESS)
    )
    EncounterService.update(
        actor=actor, encounter_id=encounter.id, patch=EncounterPatch(status=EncounterStatus.COMPLETED)
    )

    with pytest.raises(ConflictError):
        EncounterService.update(
            actor=actor,
            encounter_id=encounter.id,
            patch=EncounterPatch(status=EncounterStatus.IN_PROGRESS, location="should not stick"),
        )

    encounter.refresh_from_db()
    assert encounter.status == EncounterStatus.COMPLETED
    assert encounter.location is None
    assert ProgressNote.objects.filter(encounter_id=encounter.id).count() == 1


def test_partial_update_touches_only_present_fields(actor, encounter):
    original_type = encounter.type

    EncounterService.update(actor=actor, encounter_id=encounter.id, patch=EncounterPatch(location="Clinic B"))
    encounter.refresh_from_db()
    assert encounter.location == "Clinic B"
    assert encounter.type == original_type
    assert encounter.status == EncounterStatus.SCHEDULED

    # explicit None clears a nullable column
    EncounterService.update(actor=actor, encounter_id=encounter.id, patch=EncounterPatch(location=None))
    encounter.refresh_from_db()
    assert encounter.location is None


def test_missing_appointment_does_not_block_start(actor, provider, patient_id):
    import uuid

    enc = _create(actor, provider, patient_id, appointment_id=uuid.uuid4()).encounter

    outcome = EncounterService.update(
        actor=actor, encounter_id=enc.id, patch=EncounterPatch(status=EncounterStatus.IN_PROGRESS)
    )
    assert outcome.draft_note_id is not None


def test_non_startable_appointment_is_left_alone(actor, provider, patient_id, appointment):
    appointment.status = AppointmentStatus.CANCELLED
    appointment.save()

    outcome = _create(
        actor, provider, patient_id, appointment_id=appointment.id, status=EncounterStatus.IN_PROGRESS
    )

    assert outcome.draft_note_id is not None
    appointment.refresh_from_db()
    assert appointment.status == AppointmentStatus.CANCELLED


def test_update_missing_encounter_is_not_found(actor):
    import uuid

    from rest_framework.exceptions import NotFound

    with pytest.raises(NotFound):
        EncounterService.update(actor=actor, encounter_id=uuid.uuid4(), patch=EncounterPatch(location="x"))
    assert Encounter.objects.count() == 0
