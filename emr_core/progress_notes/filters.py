# emr_core/progress_notes/filters.py
import django_filters
from django.db.models import Q

from emr_core.progress_notes.models import SOAP_FIELDS, NoteStatus, ProgressNote


class ProgressNoteFilter(django_filters.FilterSet):
    encounter_id = django_filters.UUIDFilter()
    patient_id = django_filters.UUIDFilter()
    author_id = django_filters.NumberFilter()
    status = django_filters.ChoiceFilter(choices=NoteStatus.choices)
    keywords = django_filters.CharFilter(method="filter_keywords")

    class Meta:
        model = ProgressNote
        fields = ["encounter_id", "patient_id", "author_id", "status"]

    def filter_keywords(self, queryset, name, value):
        """Case-insensitive match in any SOAP section or the summary."""
        term = (value or "").strip()
        if not term:
            return queryset
        cond = Q(summary__icontains=term)
        for field in SOAP_FIELDS:
            cond |= Q(**{f"{field}__icontains": term})
        return queryset.filter(cond)
