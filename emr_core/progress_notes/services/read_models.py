# emr_core/progress_notes/services/read_models.py
from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from emr_core.audit.metadata import Provenance, ViewMetadata
from emr_core.audit.models import LIST_SENTINEL, AuditEntityType
from emr_core.audit.services import AuditService
from emr_core.common.api.pagination import Page, paginate_queryset
from emr_core.common.permissions import PROGRESS_NOTE_READ
from emr_core.iam.actor import Actor
from emr_core.iam.guard import require_permission
from emr_core.progress_notes.models import ProgressNote
from emr_core.progress_notes.selectors import get_note, list_notes


def list_progress_notes(
    *,
    actor: Actor | None,
    params: Mapping[str, Any],
    page: int,
    page_size: int,
    provenance: Provenance | None = None,
) -> Page:
    require_permission(actor, PROGRESS_NOTE_READ)

    qs, applied = list_notes(params=params)
    result = paginate_queryset(qs, page=page, page_size=page_size)

    AuditService.record(
        actor_id=actor.user_id,
        entity_type=AuditEntityType.PROGRESS_NOTE,
        entity_id=LIST_SENTINEL,
        metadata=ViewMetadata.for_query(
            applied, page=page, page_size=page_size, total=result.total, provenance=provenance,
        ),
    )
    return result


def read_progress_note(*, actor: Actor | None, note_id: UUID, provenance: Provenance | None = None) -> ProgressNote:
    require_permission(actor, PROGRESS_NOTE_READ)
    note = get_note(note_id=note_id)
    AuditService.record(
        actor_id=actor.user_id,
        entity_type=AuditEntityType.PROGRESS_NOTE,
        entity_id=note.id,
        metadata=ViewMetadata(provenance=provenance or Provenance()),
    )
    return note
