# emr_core/investigations/admin.py
from __future__ import annotations

from django.contrib import admin

from emr_core.investigations.models import InvestigationOrder, InvestigationResult


@admin.register(InvestigationOrder)
class InvestigationOrderAdmin(admin.ModelAdmin):
    list_display = ("id", "patient_id", "provider_id", "name", "code", "status", "ordered_at")
    list_filter = ("status",)
    search_fields = ("id", "patient_id", "code", "name")
    readonly_fields = ("id", "created_at", "updated_at")
    ordering = ("-ordered_at",)


@admin.register(InvestigationResult)
class InvestigationResultAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "name", "code", "interpretation", "observed_at", "reviewed", "reviewer_id")
    list_filter = ("interpretation", "reviewed")
    search_fields = ("id", "order__id", "code", "name")
    # sign-off goes through the review endpoint
    readonly_fields = ("id", "reviewed", "reviewer_id", "reviewed_at", "created_at", "updated_at")
    ordering = ("-observed_at",)
