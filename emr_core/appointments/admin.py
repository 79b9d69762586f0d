from django.contrib import admin

from emr_core.appointments.models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("id", "patient_id", "provider_id", "scheduled_for", "status")
    list_filter = ("status",)
    readonly_fields = ("created_at", "updated_at")
