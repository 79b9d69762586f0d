# emr_core/progress_notes/models.py
from __future__ import annotations

from django.db import models
from django.db.models import Q

from emr_core.common.models import UUIDModel


class NoteStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    FINALIZED = "finalized", "Finalized"
    AMENDED = "amended", "Amended"


LOCKED_STATUSES = (NoteStatus.FINALIZED, NoteStatus.AMENDED)

SOAP_FIELDS = ("subjective", "objective", "assessment", "plan")


class ProgressNote(UUIDModel):
    """
    SOAP progress note.

    Rules:
    - DRAFT is the only editable state.
    - FINALIZED/AMENDED are locked; finalized_at and signature_hash are
      written together, once, by the finalize transition.
    """
    encounter = models.ForeignKey(
        "encounters.Encounter",
        on_delete=models.PROTECT,
        related_name="progress_notes",
        null=True,
        blank=True,
    )
    patient_id = models.UUIDField(db_index=True)
    author_id = models.BigIntegerField(db_index=True)

    status = models.CharField(max_length=16, choices=NoteStatus.choices, default=NoteStatus.DRAFT, db_index=True)

    subjective = models.TextField(null=True, blank=True)
    objective = models.TextField(null=True, blank=True)
    assessment = models.TextField(null=True, blank=True)
    plan = models.TextField(null=True, blank=True)
    summary = models.CharField(max_length=500, null=True, blank=True)

    # [{"name", "content_type", "size", "url"?}]; files live elsewhere
    attachments = models.JSONField(default=list, blank=True)

    autosaved_at = models.DateTimeField(null=True, blank=True)
    finalized_at = models.DateTimeField(null=True, blank=True)
    signature_hash = models.CharField(max_length=512, null=True, blank=True)

    class Meta:
        db_table = "progress_notes_progress_note"
        indexes = [
            models.Index(fields=["encounter", "created_at"], name="note_encounter_created_idx"),
            models.Index(fields=["patient_id", "updated_at"], name="note_patient_updated_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(status=NoteStatus.DRAFT, finalized_at__isnull=True, signature_hash__isnull=True)
                    | Q(status__in=LOCKED_STATUSES, finalized_at__isnull=False, signature_hash__isnull=False)
                ),
                name="ck_note_signature_matches_status",
            ),
        ]

    def __str__(self) -> str:
        return f"ProgressNote({self.id}, {self.status})"

    @property
    def is_locked(self) -> bool:
        return self.status in LOCKED_STATUSES
