# emr_core/encounters/models.py

from django.db import models

from emr_core.common.models import UUIDModel


class EncounterMode(models.TextChoices):
    IN_PERSON = "in_person", "In person"
    TELEMEDICINE = "telemedicine", "Telemedicine"
    PHONE = "phone", "Phone"
    MESSAGING = "messaging", "Messaging"


class EncounterStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class Encounter(UUIDModel):
    """
    One clinical visit. Progress notes hang off it.

    started_at is stamped the one time the encounter enters in_progress;
    it is what makes that transition fire at most once.
    """
    patient_id = models.UUIDField(db_index=True)
    provider_id = models.BigIntegerField(db_index=True)
    appointment_id = models.UUIDField(null=True, blank=True, db_index=True)

    type = models.CharField(max_length=64)
    mode = models.CharField(max_length=16, choices=EncounterMode.choices, default=EncounterMode.IN_PERSON)

    start_time = models.DateTimeField(db_index=True)
    end_time = models.DateTimeField(null=True, blank=True)
    location = models.CharField(max_length=255, null=True, blank=True)
    rendering_provider_id = models.BigIntegerField(null=True, blank=True)

    status = models.CharField(
        max_length=16,
        choices=EncounterStatus.choices,
        default=EncounterStatus.SCHEDULED,
        db_index=True,
    )
    started_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "encounters_encounter"
        indexes = [
            models.Index(fields=["patient_id", "start_time"], name="enc_patient_start_idx"),
            models.Index(fields=["provider_id", "start_time"], name="enc_provider_start_idx"),
        ]

    def __str__(self) -> str:
        return f"Encounter({self.patient_id}, {self.status})"
