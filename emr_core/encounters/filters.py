# emr_core/encounters/filters.py
import django_filters

from emr_core.encounters.models import Encounter, EncounterStatus


class EncounterFilter(django_filters.FilterSet):
    patient_id = django_filters.UUIDFilter()
    provider_id = django_filters.NumberFilter()
    status = django_filters.ChoiceFilter(choices=EncounterStatus.choices)
    date_from = django_filters.IsoDateTimeFilter(field_name="start_time", lookup_expr="gte")
    date_to = django_filters.IsoDateTimeFilter(field_name="start_time", lookup_expr="lte")

    class Meta:
        model = Encounter
        fields = ["patient_id", "provider_id", "status"]
