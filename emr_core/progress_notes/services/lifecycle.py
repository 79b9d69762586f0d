# emr_core/progress_notes/services/lifecycle.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from emr_core.audit.metadata import CreateMetadata, FinalizeMetadata, Provenance, UpdateMetadata, related
from emr_core.audit.models import AuditEntityType
from emr_core.audit.services import AuditService
from emr_core.common.api.exceptions import ConflictError
from emr_core.common.events import publish_on_commit
from emr_core.common.logging import log_domain_event
from emr_core.common.patch import MISSING, Patch
from emr_core.common.permissions import PROGRESS_NOTE_CREATE, PROGRESS_NOTE_FINALIZE, PROGRESS_NOTE_UPDATE
from emr_core.encounters.models import Encounter
from emr_core.iam.actor import Actor
from emr_core.iam.guard import require_permission
from emr_core.progress_notes.models import NoteStatus, ProgressNote

logger = logging.getLogger(__name__)

NOTE_FINALIZED = "note.finalized"


@dataclass(frozen=True)
class NotePatch(Patch):
    subjective: Any = MISSING
    objective: Any = MISSING
    assessment: Any = MISSING
    plan: Any = MISSING
    summary: Any = MISSING
    attachments: Any = MISSING


def signature_min_length() -> int:
    return int(getattr(settings, "EMR_SIGNATURE_MIN_LENGTH", 16))


def _get_note(note_id: UUID) -> ProgressNote:
    note = ProgressNote.objects.select_related("encounter").filter(id=note_id).first()
    if note is None:
        raise NotFound("Progress note not found.")
    return note


def _require_editor(actor: Actor, note: ProgressNote) -> None:
    """Author, the encounter's provider, or ADMIN."""
    if actor.is_admin or note.author_id == actor.user_id:
        return
    if note.encounter is not None and note.encounter.provider_id == actor.user_id:
        return
    raise PermissionDenied("Only the author or the encounter provider can change this note.")


def _locked_conflict(status: str) -> ConflictError:
    return ConflictError(f"Progress note is {status} and can no longer be changed.")


def start_encounter_draft(*, encounter: Encounter, author_id: int) -> ProgressNote:
    """
    Empty draft for an encounter that just entered in_progress.
    No capability check: this is a side effect of an already-authorized
    encounter command and runs in that command's transaction.
    """
    return ProgressNote.objects.create(
        encounter=encounter,
        patient_id=encounter.patient_id,
        author_id=author_id,
        status=NoteStatus.DRAFT,
    )


@transaction.atomic
def create_draft(
    *,
    actor: Actor | None,
    encounter_id: UUID,
    patient_id: UUID,
    fields: Mapping[str, Any] | None = None,
    provenance: Provenance | None = None,
) -> ProgressNote:
    require_permission(actor, PROGRESS_NOTE_CREATE)

    encounter = Encounter.objects.filter(id=encounter_id).first()
    if encounter is None:
        raise NotFound("Encounter not found.")
    if str(encounter.patient_id) != str(patient_id):
        raise ConflictError("patient_id does not match the encounter's patient.")

    note = ProgressNote.objects.create(
        encounter=encounter,
        patient_id=patient_id,
        author_id=actor.user_id,
        status=NoteStatus.DRAFT,
        **NotePatch.from_data(fields or {}).changes(),
    )

    AuditService.record(
        actor_id=actor.user_id,
        entity_type=AuditEntityType.PROGRESS_NOTE,
        entity_id=note.id,
        metadata=CreateMetadata(
            status=note.status,
            related_ids=related(encounter_id=encounter.id, patient_id=patient_id),
            provenance=provenance or Provenance(),
        ),
    )
    return note


@transaction.atomic
def update_draft(
    *,
    actor: Actor | None,
    note_id: UUID,
    patch: NotePatch,
    provenance: Provenance | None = None,
) -> ProgressNote:
    """
    Autosave-friendly: overwrite only supplied fields, last write wins.
    The write is conditional on status=draft, so a note finalized by a
    concurrent request is never touched.
    """
    require_permission(actor, PROGRESS_NOTE_UPDATE)

    note = _get_note(note_id)
    _require_editor(actor, note)
    if note.is_locked:
        raise _locked_conflict(note.status)

    changes = patch.changes()
    now = timezone.now()
    updated = ProgressNote.objects.filter(id=note_id, status=NoteStatus.DRAFT).update(
        **changes, autosaved_at=now, updated_at=now
    )
    if not updated:
        note.refresh_from_db(fields=["status"])
        raise _locked_conflict(note.status)

    note.refresh_from_db()

    AuditService.record(
        actor_id=actor.user_id,
        entity_type=AuditEntityType.PROGRESS_NOTE,
        entity_id=note.id,
        metadata=UpdateMetadata(
            changed_fields=tuple(sorted(changes)),
            from_status=NoteStatus.DRAFT,
            to_status=note.status,
            provenance=provenance or Provenance(),
        ),
    )
    return note


@transaction.atomic
def finalize(
    *,
    actor: Actor | None,
    note_id: UUID,
    signature_hash: str | None,
    finalized_at: datetime | None = None,
    provenance: Provenance | None = None,
) -> ProgressNote:
    """
    One-way draft -> finalized. The only writer of finalized_at and
    signature_hash. Publishes note.finalized after commit.
    """
    require_permission(actor, PROGRESS_NOTE_FINALIZE)

    note = _get_note(note_id)
    _require_editor(actor, note)
    if note.is_locked:
        raise _locked_conflict(note.status)

    min_length = signature_min_length()
    if not signature_hash or len(signature_hash) < min_length:
        raise ValidationError(
            {"signature_hash": [f"Signature hash must be at least {min_length} characters."]}
        )

    now = timezone.now()
    finalized_at = finalized_at or now
    updated = ProgressNote.objects.filter(id=note_id, status=NoteStatus.DRAFT).update(
        status=NoteStatus.FINALIZED,
        finalized_at=finalized_at,
        signature_hash=signature_hash,
        updated_at=now,
    )
    if not updated:
        # lost a race with another finalize
        note.refresh_from_db(fields=["status"])
        raise _locked_conflict(note.status)

    note.refresh_from_db()

    AuditService.record(
        actor_id=actor.user_id,
        entity_type=AuditEntityType.PROGRESS_NOTE,
        entity_id=note.id,
        metadata=FinalizeMetadata(
            from_status=NoteStatus.DRAFT,
            to_status=note.status,
            encounter_id=str(note.encounter_id) if note.encounter_id else None,
            finalized_at=note.finalized_at.isoformat(),
            provenance=provenance or Provenance(),
        ),
    )

    publish_on_commit(
        NOTE_FINALIZED,
        {
            "note_id": str(note.id),
            "encounter_id": str(note.encounter_id) if note.encounter_id else None,
            "patient_id": str(note.patient_id),
            "author_id": note.author_id,
            "finalized_at": note.finalized_at.isoformat(),
            "signature_hash": note.signature_hash,
        },
    )
    log_domain_event(logger, NOTE_FINALIZED, entity_type="progress_note", entity_id=note.id)
    return note
