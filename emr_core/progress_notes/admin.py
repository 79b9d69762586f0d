# emr_core/progress_notes/admin.py
from __future__ import annotations

from django.contrib import admin

from emr_core.progress_notes.models import ProgressNote


@admin.register(ProgressNote)
class ProgressNoteAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "encounter",
        "patient_id",
        "author_id",
        "status",
        "autosaved_at",
        "finalized_at",
    )
    list_filter = ("status",)
    search_fields = ("id", "encounter__id", "patient_id")
    # signing only happens through the finalize transition
    readonly_fields = ("id", "status", "finalized_at", "signature_hash", "autosaved_at", "created_at", "updated_at")
    ordering = ("-updated_at",)
