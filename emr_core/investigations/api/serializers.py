# emr_core/investigations/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from emr_core.investigations.models import Interpretation, InvestigationOrder, InvestigationResult, OrderStatus
from emr_core.investigations.selectors import LAST_RESULT_FIELDS
from emr_core.progress_notes.api.serializers import AttachmentSerializer


class InvestigationOrderCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    provider_id = serializers.IntegerField(min_value=1)
    encounter_id = serializers.UUIDField(required=False, allow_null=True)
    code = serializers.CharField(max_length=64, required=False, allow_null=True, allow_blank=True)
    name = serializers.CharField(max_length=255)
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False, default=OrderStatus.ORDERED)
    ordered_at = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class InvestigationOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvestigationOrder
        fields = [
            "id",
            "patient_id",
            "provider_id",
            "encounter_id",
            "code",
            "name",
            "status",
            "ordered_at",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InvestigationResultCreateSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    code = serializers.CharField(max_length=64, required=False, allow_null=True, allow_blank=True)
    name = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    value = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    units = serializers.CharField(max_length=32, required=False, allow_null=True, allow_blank=True)
    reference_range_low = serializers.CharField(max_length=32, required=False, allow_null=True, allow_blank=True)
    reference_range_high = serializers.CharField(max_length=32, required=False, allow_null=True, allow_blank=True)
    reference_range_text = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    interpretation = serializers.ChoiceField(choices=Interpretation.choices, required=False, allow_null=True)
    performer = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    observed_at = serializers.DateTimeField(required=False, allow_null=True)
    attachments = AttachmentSerializer(many=True, required=False)

    def validate(self, attrs):
        if not (attrs.get("name") or attrs.get("code")):
            raise serializers.ValidationError({"name": ["Either name or code is required."]})
        return attrs


class InvestigationResultSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = InvestigationResult
        fields = [
            "id",
            "order_id",
            "code",
            "name",
            "value",
            "units",
            "reference_range_low",
            "reference_range_high",
            "reference_range_text",
            "interpretation",
            "performer",
            "observed_at",
            "reviewed",
            "reviewer_id",
            "reviewed_at",
            "attachments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReviewSerializer(serializers.Serializer):
    reviewed = serializers.BooleanField(required=False, default=True)
    reviewed_at = serializers.DateTimeField(required=False, allow_null=True)


class InvestigationResultEnvelopeSerializer(serializers.Serializer):
    result = InvestigationResultSerializer()


class InvestigationOrderEnvelopeSerializer(serializers.Serializer):
    order = InvestigationOrderSerializer()


class InvestigationOrderUpdateSerializer(serializers.Serializer):
    """Body id plus status and/or notes; absent keys are left alone."""
    id = serializers.UUIDField()
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class InvestigationResultUpdateSerializer(serializers.Serializer):
    """Report fields only. Review state changes go through the review endpoint."""
    id = serializers.UUIDField()
    code = serializers.CharField(max_length=64, required=False, allow_null=True, allow_blank=True)
    name = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    value = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    units = serializers.CharField(max_length=32, required=False, allow_null=True, allow_blank=True)
    reference_range_low = serializers.CharField(max_length=32, required=False, allow_null=True, allow_blank=True)
    reference_range_high = serializers.CharField(max_length=32, required=False, allow_null=True, allow_blank=True)
    reference_range_text = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    interpretation = serializers.ChoiceField(choices=Interpretation.choices, required=False, allow_null=True)
    performer = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    observed_at = serializers.DateTimeField(required=False, allow_null=True)
    attachments = AttachmentSerializer(many=True, required=False)


class LastResultSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField(allow_null=True)
    value = serializers.CharField(allow_null=True)
    units = serializers.CharField(allow_null=True)
    interpretation = serializers.CharField(allow_null=True)
    observed_at = serializers.DateTimeField(allow_null=True)
    reviewed = serializers.BooleanField()
    reviewed_at = serializers.DateTimeField(allow_null=True)


class InvestigationOrderListItemSerializer(InvestigationOrderSerializer):
    """Order plus its most recently observed result (from selectors.with_last_result)."""
    last_result = serializers.SerializerMethodField()

    class Meta(InvestigationOrderSerializer.Meta):
        fields = InvestigationOrderSerializer.Meta.fields + ["last_result"]
        read_only_fields = fields

    def get_last_result(self, obj) -> dict | None:
        if getattr(obj, "last_result_id", None) is None:
            return None
        return LastResultSerializer(
            {name: getattr(obj, f"last_result_{name}") for name in LAST_RESULT_FIELDS}
        ).data
