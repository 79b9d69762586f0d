# emr_core/progress_notes/selectors.py
from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from emr_core.common.filters import apply_filterset
from emr_core.progress_notes.filters import ProgressNoteFilter
from emr_core.progress_notes.models import ProgressNote


def list_notes(*, params: Mapping[str, Any]) -> tuple[QuerySet[ProgressNote], dict[str, Any]]:
    qs, applied = apply_filterset(ProgressNoteFilter, params, ProgressNote.objects.all())
    return qs.order_by("-updated_at", "-created_at"), applied


def get_note(*, note_id: UUID) -> ProgressNote:
    note = ProgressNote.objects.filter(id=note_id).first()
    if note is None:
        raise NotFound("Progress note not found.")
    return note
