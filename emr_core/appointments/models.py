# emr_core/appointments/models.py
from django.db import models

from emr_core.common.models import UUIDModel


class AppointmentStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    CONFIRMED = "confirmed", "Confirmed"
    IN_PROGRESS = "in-progress", "In progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    NO_SHOW = "no-show", "No show"


# Only these may be moved to in-progress when the visit starts.
STARTABLE_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)


class Appointment(UUIDModel):
    """
    Booking owned by the scheduling side of the product.
    Encounters only reference it by id and may nudge its status.
    """
    patient_id = models.UUIDField(db_index=True)
    provider_id = models.BigIntegerField(db_index=True)
    scheduled_for = models.DateTimeField(db_index=True)
    status = models.CharField(
        max_length=16,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED,
        db_index=True,
    )

    class Meta:
        db_table = "appointments_appointment"
        ordering = ["-scheduled_for"]

    def __str__(self) -> str:
        return f"Appointment({self.patient_id}, {self.status})"
