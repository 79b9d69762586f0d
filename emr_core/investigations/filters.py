# emr_core/investigations/filters.py
import django_filters
from django.db.models import Q

from emr_core.investigations.models import Interpretation, InvestigationOrder, InvestigationResult, OrderStatus


class InvestigationOrderFilter(django_filters.FilterSet):
    patient_id = django_filters.UUIDFilter()
    provider_id = django_filters.NumberFilter()
    encounter_id = django_filters.UUIDFilter()
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)

    class Meta:
        model = InvestigationOrder
        fields = ["patient_id", "provider_id", "encounter_id", "status"]


class InvestigationResultFilter(django_filters.FilterSet):
    order_id = django_filters.UUIDFilter()
    patient_id = django_filters.UUIDFilter(field_name="order__patient_id")
    provider_id = django_filters.NumberFilter(field_name="order__provider_id")
    interpretation = django_filters.ChoiceFilter(choices=Interpretation.choices)
    reviewed = django_filters.BooleanFilter()
    date_from = django_filters.IsoDateTimeFilter(field_name="observed_at", lookup_expr="gte")
    date_to = django_filters.IsoDateTimeFilter(field_name="observed_at", lookup_expr="lte")
    keywords = django_filters.CharFilter(method="filter_keywords")

    class Meta:
        model = InvestigationResult
        fields = ["order_id", "interpretation", "reviewed"]

    def filter_keywords(self, queryset, name, value):
        term = (value or "").strip()
        if not term:
            return queryset
        return queryset.filter(
            Q(name__icontains=term) | Q(code__icontains=term) | Q(value__icontains=term)
        )
