# emr_core/encounters/selectors.py
from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from django.db.models import OuterRef, QuerySet, Subquery
from rest_framework.exceptions import NotFound

from emr_core.common.filters import apply_filterset
from emr_core.encounters.filters import EncounterFilter
from emr_core.encounters.models import Encounter
from emr_core.progress_notes.models import ProgressNote


class EncounterSelectors:
    """
    Read-only queries for encounters.
    No .save(), no state mutation here.
    """

    @staticmethod
    def with_latest_note(qs: QuerySet[Encounter]) -> QuerySet[Encounter]:
        """
        Annotate latest_note_{id,status,summary,updated_at} from the most
        recently created note of each encounter (NULL when there is none).
        Correlated subqueries keep it portable across PostgreSQL and SQLite.
        """
        latest = ProgressNote.objects.filter(encounter_id=OuterRef("pk")).order_by("-created_at", "-id")
        return qs.annotate(
            latest_note_id=Subquery(latest.values("id")[:1]),
            latest_note_status=Subquery(latest.values("status")[:1]),
            latest_note_summary=Subquery(latest.values("summary")[:1]),
            latest_note_updated_at=Subquery(latest.values("updated_at")[:1]),
        )

    @staticmethod
    def list_encounters(*, params: Mapping[str, Any]) -> tuple[QuerySet[Encounter], dict[str, Any]]:
        qs, applied = apply_filterset(EncounterFilter, params, Encounter.objects.all())
        qs = EncounterSelectors.with_latest_note(qs)
        return qs.order_by("-start_time", "-created_at"), applied

    @staticmethod
    def get_encounter(*, encounter_id: UUID) -> Encounter:
        enc = EncounterSelectors.with_latest_note(Encounter.objects.filter(id=encounter_id)).first()
        if enc is None:
            raise NotFound("Encounter not found.")
        return enc
