# emr_core/audit/api/serializers.py
from rest_framework import serializers

from emr_core.audit.models import AuditEvent


class AuditEventSerializer(serializers.ModelSerializer):
    # API field name "timestamp" maps to the model's occurred_at
    timestamp = serializers.DateTimeField(source="occurred_at", read_only=True)

    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "actor_id",
            "action",
            "entity_type",
            "entity_id",
            "source",
            "timestamp",
            "metadata",
        ]
        read_only_fields = fields
