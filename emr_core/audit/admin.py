# emr_core/audit/admin.py
from django.contrib import admin

from emr_core.audit.models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ("occurred_at", "action", "entity_type", "entity_id", "actor_id", "source")
    list_filter = ("action", "entity_type", "source")
    search_fields = ("entity_id",)
    readonly_fields = [f.name for f in AuditEvent._meta.fields]

    # Provenance rows are written by code only.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
