# emr_core/encounters/admin.py
from __future__ import annotations

from django.contrib import admin

from emr_core.encounters.models import Encounter


@admin.register(Encounter)
class EncounterAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "patient_id",
        "provider_id",
        "type",
        "mode",
        "status",
        "start_time",
    )
    list_filter = ("status", "mode")
    search_fields = ("id", "patient_id", "appointment_id")
    readonly_fields = ("id", "started_at", "created_at", "updated_at")
    ordering = ("-start_time",)
