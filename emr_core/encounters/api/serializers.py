# emr_core/encounters/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from emr_core.encounters.models import Encounter, EncounterMode, EncounterStatus


def _check_window(attrs):
    start, end = attrs.get("start_time"), attrs.get("end_time")
    if start is not None and end is not None and end < start:
        raise serializers.ValidationError({"end_time": ["end_time must not be before start_time."]})
    return attrs


class EncounterCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    provider_id = serializers.IntegerField(min_value=1)
    type = serializers.CharField(max_length=64)
    mode = serializers.ChoiceField(choices=EncounterMode.choices, required=False, default=EncounterMode.IN_PERSON)
    status = serializers.ChoiceField(choices=EncounterStatus.choices, required=False, default=EncounterStatus.SCHEDULED)
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField(required=False, allow_null=True)
    appointment_id = serializers.UUIDField(required=False, allow_null=True)
    location = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    rendering_provider_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    def validate(self, attrs):
        return _check_window(attrs)


class EncounterUpdateSerializer(serializers.Serializer):
    """Body id plus any subset of fields; absent keys are left alone."""
    id = serializers.UUIDField()
    patient_id = serializers.UUIDField(required=False)
    provider_id = serializers.IntegerField(min_value=1, required=False)
    type = serializers.CharField(max_length=64, required=False)
    mode = serializers.ChoiceField(choices=EncounterMode.choices, required=False)
    status = serializers.ChoiceField(choices=EncounterStatus.choices, required=False)
    start_time = serializers.DateTimeField(required=False)
    end_time = serializers.DateTimeField(required=False, allow_null=True)
    appointment_id = serializers.UUIDField(required=False, allow_null=True)
    location = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    rendering_provider_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    def validate(self, attrs):
        return _check_window(attrs)


class EncounterSerializer(serializers.ModelSerializer):
    class Meta:
        model = Encounter
        fields = [
            "id",
            "patient_id",
            "provider_id",
            "appointment_id",
            "type",
            "mode",
            "start_time",
            "end_time",
            "location",
            "rendering_provider_id",
            "status",
            "started_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class LatestNoteSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    status = serializers.CharField()
    summary = serializers.CharField(allow_null=True)
    updated_at = serializers.DateTimeField()


class EncounterListItemSerializer(EncounterSerializer):
    """Encounter plus its most recent note (from EncounterSelectors.with_latest_note)."""
    latest_note = serializers.SerializerMethodField()

    class Meta(EncounterSerializer.Meta):
        fields = EncounterSerializer.Meta.fields + ["latest_note"]
        read_only_fields = fields

    def get_latest_note(self, obj) -> dict | None:
        note_id = getattr(obj, "latest_note_id", None)
        if note_id is None:
            return None
        return LatestNoteSerializer(
            {
                "id": note_id,
                "status": obj.latest_note_status,
                "summary": obj.latest_note_summary,
                "updated_at": obj.latest_note_updated_at,
            }
        ).data


class EncounterOutcomeSerializer(serializers.Serializer):
    encounter = EncounterSerializer()
    draft_note_id = serializers.UUIDField(allow_null=True)
