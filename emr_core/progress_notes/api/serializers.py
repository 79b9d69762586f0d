# emr_core/progress_notes/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from emr_core.progress_notes.models import ProgressNote


class AttachmentSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    content_type = serializers.CharField(max_length=128)
    size = serializers.IntegerField(min_value=0)
    url = serializers.URLField(required=False, allow_null=True)


class _SoapFieldsMixin(serializers.Serializer):
    subjective = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    objective = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    assessment = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    plan = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    summary = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=500)
    attachments = AttachmentSerializer(many=True, required=False)


class ProgressNoteCreateSerializer(_SoapFieldsMixin):
    encounter_id = serializers.UUIDField()
    patient_id = serializers.UUIDField()


class ProgressNoteUpdateSerializer(_SoapFieldsMixin):
    id = serializers.UUIDField()


class ProgressNoteFinalizeSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    # length policy lives in the service so it stays configurable
    signature_hash = serializers.CharField(max_length=512, allow_blank=True)
    finalized_at = serializers.DateTimeField(required=False)


class ProgressNoteSerializer(serializers.ModelSerializer):
    encounter_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = ProgressNote
        fields = [
            "id",
            "encounter_id",
            "patient_id",
            "author_id",
            "status",
            "subjective",
            "objective",
            "assessment",
            "plan",
            "summary",
            "attachments",
            "autosaved_at",
            "finalized_at",
            "signature_hash",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProgressNoteEnvelopeSerializer(serializers.Serializer):
    note = ProgressNoteSerializer()
