# emr_core/common/filters.py
from __future__ import annotations

from typing import Any, Mapping

from django.db.models import QuerySet
from django_filters.utils import translate_validation


def apply_filterset(filterset_class, params: Mapping[str, Any], queryset: QuerySet) -> tuple[QuerySet, dict[str, Any]]:
    """
    Run a django-filter FilterSet outside a generic view.

    Returns (filtered queryset, cleaned filters that were actually applied).
    Invalid params raise a DRF ValidationError with per-field issues.
    """
    fs = filterset_class(data=params, queryset=queryset)
    if not fs.is_valid():
        raise translate_validation(fs.errors)

    applied = {
        name: value
        for name, value in fs.form.cleaned_data.items()
        if value is not None and value != "" and value != []
    }
    return fs.qs, applied
