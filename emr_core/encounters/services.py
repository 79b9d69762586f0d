# emr_core/encounters/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from emr_core.appointments.services import AppointmentService
from emr_core.audit.metadata import (
    CreateMetadata,
    Provenance,
    UpdateMetadata,
    ViewMetadata,
    related,
)
from emr_core.audit.models import LIST_SENTINEL, AuditEntityType
from emr_core.audit.services import AuditService
from emr_core.common.api.exceptions import ConflictError
from emr_core.common.api.pagination import Page, paginate_queryset
from emr_core.common.logging import log_domain_event
from emr_core.common.patch import MISSING, Patch
from emr_core.common.permissions import ENCOUNTER_CREATE, ENCOUNTER_READ, ENCOUNTER_UPDATE
from emr_core.encounters.models import Encounter, EncounterMode, EncounterStatus
from emr_core.encounters.selectors import EncounterSelectors
from emr_core.iam.actor import Actor
from emr_core.iam.guard import require_permission
from emr_core.progress_notes.models import ProgressNote
from emr_core.progress_notes.services.lifecycle import start_encounter_draft

logger = logging.getLogger(__name__)

DRAFT_TRIGGER = "encounter_started"


@dataclass(frozen=True)
class EncounterPatch(Patch):
    patient_id: Any = MISSING
    provider_id: Any = MISSING
    appointment_id: Any = MISSING
    type: Any = MISSING
    mode: Any = MISSING
    start_time: Any = MISSING
    end_time: Any = MISSING
    location: Any = MISSING
    rendering_provider_id: Any = MISSING
    status: Any = MISSING


@dataclass(frozen=True)
class EncounterOutcome:
    encounter: Encounter
    draft_note_id: UUID | None = None


class EncounterService:
    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------
    @staticmethod
    def _on_started(*, actor: Actor, encounter: Encounter, provenance: Provenance | None) -> ProgressNote:
        """
        Side effects of entering in_progress. Caller guarantees this runs at
        most once per encounter (conditional update on started_at) and inside
        its transaction.
        """
        note = start_encounter_draft(encounter=encounter, author_id=actor.user_id)
        appointment_flipped = AppointmentService.mark_in_progress(appointment_id=encounter.appointment_id)

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.PROGRESS_NOTE,
            entity_id=note.id,
            metadata=CreateMetadata(
                status=note.status,
                related_ids=related(encounter_id=encounter.id, patient_id=encounter.patient_id),
                trigger=DRAFT_TRIGGER,
                provenance=provenance or Provenance(),
            ),
        )
        log_domain_event(
            logger,
            "encounter.started",
            entity_type="encounter",
            entity_id=encounter.id,
            draft_note_id=str(note.id),
            appointment_flipped=appointment_flipped,
        )
        return note

    # ---------------------------------------------------------------------
    # Reads
    # ---------------------------------------------------------------------
    @staticmethod
    def list(
        *,
        actor: Actor | None,
        params: Mapping[str, Any],
        page: int,
        page_size: int,
        provenance: Provenance | None = None,
    ) -> Page:
        require_permission(actor, ENCOUNTER_READ)

        qs, applied = EncounterSelectors.list_encounters(params=params)
        result = paginate_queryset(qs, page=page, page_size=page_size)

        # one aggregate record per call, not per row
        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.ENCOUNTER,
            entity_id=LIST_SENTINEL,
            metadata=ViewMetadata.for_query(
                applied, page=page, page_size=page_size, total=result.total, provenance=provenance,
            ),
        )
        return result

    @staticmethod
    def retrieve(*, actor: Actor | None, encounter_id: UUID, provenance: Provenance | None = None) -> Encounter:
        require_permission(actor, ENCOUNTER_READ)
        enc = EncounterSelectors.get_encounter(encounter_id=encounter_id)
        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.ENCOUNTER,
            entity_id=enc.id,
            metadata=ViewMetadata(provenance=provenance or Provenance()),
        )
        return enc

    # ---------------------------------------------------------------------
    # Encounter lifecycle writes
    # ---------------------------------------------------------------------
    @staticmethod
    @transaction.atomic
    def create(
        *,
        actor: Actor | None,
        patient_id: UUID,
        provider_id: int,
        type: str,
        start_time: datetime,
        mode: str = EncounterMode.IN_PERSON,
        status: str = EncounterStatus.SCHEDULED,
        appointment_id: UUID | None = None,
        end_time: datetime | None = None,
        location: str | None = None,
        rendering_provider_id: int | None = None,
        provenance: Provenance | None = None,
    ) -> EncounterOutcome:
        require_permission(actor, ENCOUNTER_CREATE)

        starting = status == EncounterStatus.IN_PROGRESS
        enc = Encounter.objects.create(
            patient_id=patient_id,
            provider_id=provider_id,
            appointment_id=appointment_id,
            type=type,
            mode=mode,
            start_time=start_time,
            end_time=end_time,
            location=location,
            rendering_provider_id=rendering_provider_id,
            status=status,
            started_at=timezone.now() if starting else None,
        )

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.ENCOUNTER,
            entity_id=enc.id,
            metadata=CreateMetadata(
                status=enc.status,
                related_ids=related(patient_id=patient_id, appointment_id=appointment_id),
                provenance=provenance or Provenance(),
            ),
        )

        note = None
        if starting:
            note = EncounterService._on_started(actor=actor, encounter=enc, provenance=provenance)

        return EncounterOutcome(encounter=enc, draft_note_id=note.id if note else None)

    @staticmethod
    @transaction.atomic
    def update(
        *,
        actor: Actor | None,
        encounter_id: UUID,
        patch: EncounterPatch,
        provenance: Provenance | None = None,
    ) -> EncounterOutcome:
        """
        Partial update. Only fields present in `patch` are written.

        Entering in_progress is a conditional UPDATE guarded by
        "status <> in_progress AND started_at IS NULL"; the draft note and
        appointment sync run only if that statement changed the row, so
        concurrent or repeated updates cannot create a second draft.
        """
        require_permission(actor, ENCOUNTER_UPDATE)

        previous_status = (
            Encounter.objects.filter(id=encounter_id).values_list("status", flat=True).first()
        )
        if previous_status is None:
            raise NotFound("Encounter not found.")

        now = timezone.now()
        fields = patch.without("status").changes()
        if fields:
            Encounter.objects.filter(id=encounter_id).update(**fields, updated_at=now)

        transitioned = False
        if patch.is_present("status"):
            target = patch.status
            if target == EncounterStatus.IN_PROGRESS:
                transitioned = bool(
                    Encounter.objects.filter(id=encounter_id, started_at__isnull=True)
                    .exclude(status=EncounterStatus.IN_PROGRESS)
                    .update(status=EncounterStatus.IN_PROGRESS, started_at=now, updated_at=now)
                )
                if not transitioned and (
                    Encounter.objects.filter(id=encounter_id).exclude(status=EncounterStatus.IN_PROGRESS).exists()
                ):
                    raise ConflictError("Encounter was already started once and cannot re-enter in_progress.")
            else:
                Encounter.objects.filter(id=encounter_id).update(status=target, updated_at=now)

        enc = Encounter.objects.get(id=encounter_id)

        note = None
        if transitioned:
            note = EncounterService._on_started(actor=actor, encounter=enc, provenance=provenance)

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.ENCOUNTER,
            entity_id=enc.id,
            metadata=UpdateMetadata(
                changed_fields=tuple(sorted(patch.changes())),
                from_status=previous_status,
                to_status=enc.status,
                transitioned=transitioned,
                draft_note_id=str(note.id) if note else None,
                provenance=provenance or Provenance(),
            ),
        )

        return EncounterOutcome(encounter=enc, draft_note_id=note.id if note else None)
