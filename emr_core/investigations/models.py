# emr_core/investigations/models.py
from __future__ import annotations

from django.db import models
from django.db.models import Q

from emr_core.common.models import UUIDModel


class OrderStatus(models.TextChoices):
    ORDERED = "ordered", "Ordered"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class Interpretation(models.TextChoices):
    NORMAL = "normal", "Normal"
    ABNORMAL = "abnormal", "Abnormal"
    CRITICAL = "critical", "Critical"


class InvestigationOrder(UUIDModel):
    """A diagnostic test requested for a patient, optionally within an encounter."""
    patient_id = models.UUIDField(db_index=True)
    provider_id = models.BigIntegerField(db_index=True)
    encounter_id = models.UUIDField(null=True, blank=True, db_index=True)

    code = models.CharField(max_length=64, null=True, blank=True)
    name = models.CharField(max_length=255)
    status = models.CharField(max_length=16, choices=OrderStatus.choices, default=OrderStatus.ORDERED, db_index=True)
    ordered_at = models.DateTimeField(db_index=True)
    notes = models.TextField(null=True, blank=True)

    class Meta:
        db_table = "investigations_order"
        indexes = [
            models.Index(fields=["patient_id", "ordered_at"], name="inv_order_patient_idx"),
        ]

    def __str__(self) -> str:
        return f"InvestigationOrder({self.name}, {self.status})"


class InvestigationResult(UUIDModel):
    """
    A reported value for an order.

    reviewed, reviewer_id and reviewed_at move together: all set or all
    clear. Only the review transition writes them.
    """
    order = models.ForeignKey(InvestigationOrder, on_delete=models.PROTECT, related_name="results")

    code = models.CharField(max_length=64, null=True, blank=True)
    name = models.CharField(max_length=255, null=True, blank=True)
    value = models.CharField(max_length=255, null=True, blank=True)
    units = models.CharField(max_length=32, null=True, blank=True)
    reference_range_low = models.CharField(max_length=32, null=True, blank=True)
    reference_range_high = models.CharField(max_length=32, null=True, blank=True)
    reference_range_text = models.CharField(max_length=255, null=True, blank=True)
    interpretation = models.CharField(max_length=16, choices=Interpretation.choices, null=True, blank=True)
    performer = models.CharField(max_length=255, null=True, blank=True)
    observed_at = models.DateTimeField(null=True, blank=True, db_index=True)

    reviewed = models.BooleanField(default=False, db_index=True)
    reviewer_id = models.BigIntegerField(null=True, blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)

    attachments = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "investigations_result"
        indexes = [
            models.Index(fields=["order", "observed_at"], name="inv_result_order_obs_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(reviewed=True, reviewer_id__isnull=False, reviewed_at__isnull=False)
                    | Q(reviewed=False, reviewer_id__isnull=True, reviewed_at__isnull=True)
                ),
                name="ck_result_review_consistent",
            ),
        ]

    def __str__(self) -> str:
        return f"InvestigationResult({self.name or self.code}, reviewed={self.reviewed})"
