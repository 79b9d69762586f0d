# emr_core/audit/filters.py
import django_filters

from emr_core.audit.models import AuditAction, AuditEntityType, AuditEvent


class AuditEventFilter(django_filters.FilterSet):
    entity_type = django_filters.ChoiceFilter(choices=AuditEntityType.choices)
    entity_id = django_filters.CharFilter()
    action = django_filters.ChoiceFilter(choices=AuditAction.choices)
    actor_id = django_filters.NumberFilter()
    date_from = django_filters.IsoDateTimeFilter(field_name="occurred_at", lookup_expr="gte")
    date_to = django_filters.IsoDateTimeFilter(field_name="occurred_at", lookup_expr="lte")

    class Meta:
        model = AuditEvent
        fields = ["entity_type", "entity_id", "action", "actor_id"]
