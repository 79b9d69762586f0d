# emr_core/audit/models.py
import uuid

from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

LIST_SENTINEL = "list"


class AuditAction(models.TextChoices):
    VIEW = "view", "View"
    CREATE = "create", "Create"
    UPDATE = "update", "Update"
    REVIEW = "review", "Review"


class AuditEntityType(models.TextChoices):
    ENCOUNTER = "encounter", "Encounter"
    PROGRESS_NOTE = "progress_note", "Progress note"
    INVESTIGATION_ORDER = "investigation_order", "Investigation order"
    INVESTIGATION_RESULT = "investigation_result", "Investigation result"
    AUDIT_EVENT = "audit_event", "Audit event"


class AuditSource(models.TextChoices):
    API = "api", "API"
    SYSTEM = "system", "System"
    INTEGRATION = "integration", "Integration"


class AuditEventQuerySet(models.QuerySet):
    """Bulk update() and delete() are refused, like the instance methods."""

    def update(self, **kwargs):
        raise ValidationError("AuditEvent is immutable and cannot be modified once created.")

    def delete(self):
        raise ValidationError("AuditEvent is immutable and cannot be deleted.")


class AuditEvent(models.Model):
    """
    Immutable provenance record: who did what to which entity, and when.
    entity_id is a string so batch views can use the "list" sentinel.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    actor_id = models.BigIntegerField(null=True, blank=True, db_index=True)
    action = models.CharField(max_length=16, choices=AuditAction.choices, db_index=True)
    entity_type = models.CharField(max_length=32, choices=AuditEntityType.choices, db_index=True)
    entity_id = models.CharField(max_length=64, db_index=True)
    source = models.CharField(max_length=16, choices=AuditSource.choices, default=AuditSource.API)

    occurred_at = models.DateTimeField(default=timezone.now, db_index=True)
    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    objects = AuditEventQuerySet.as_manager()

    class Meta:
        db_table = "audit_audit_event"
        ordering = ["-occurred_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="audit_entity_idx"),
            models.Index(fields=["actor_id", "occurred_at"], name="audit_actor_time_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}:{self.entity_id}"

    def save(self, *args, **kwargs):
        # UUID PK exists even before first save, so use _state.adding
        if not self._state.adding:
            raise ValidationError("AuditEvent is immutable and cannot be modified once created.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("AuditEvent is immutable and cannot be deleted.")
