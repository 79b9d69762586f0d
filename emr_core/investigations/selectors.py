# emr_core/investigations/selectors.py
from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from django.db.models import F, OuterRef, QuerySet, Subquery
from rest_framework.exceptions import NotFound

from emr_core.common.filters import apply_filterset
from emr_core.investigations.filters import InvestigationOrderFilter, InvestigationResultFilter
from emr_core.investigations.models import InvestigationOrder, InvestigationResult


def get_order(*, order_id: UUID) -> InvestigationOrder:
    order = InvestigationOrder.objects.filter(id=order_id).first()
    if order is None:
        raise NotFound("Investigation order not found.")
    return order


def get_result(*, result_id: UUID) -> InvestigationResult:
    result = InvestigationResult.objects.select_related("order").filter(id=result_id).first()
    if result is None:
        raise NotFound("Investigation result not found.")
    return result


LAST_RESULT_FIELDS = ("id", "name", "value", "units", "interpretation", "observed_at", "reviewed", "reviewed_at")


def with_last_result(qs: QuerySet[InvestigationOrder]) -> QuerySet[InvestigationOrder]:
    """
    Annotate last_result_<field> from each order's most recently observed
    result (NULL when the order has none).
    """
    latest = InvestigationResult.objects.filter(order_id=OuterRef("pk")).order_by(
        F("observed_at").desc(nulls_last=True), "-created_at"
    )
    return qs.annotate(
        **{f"last_result_{name}": Subquery(latest.values(name)[:1]) for name in LAST_RESULT_FIELDS}
    )


def list_orders(*, params: Mapping[str, Any]) -> tuple[QuerySet[InvestigationOrder], dict[str, Any]]:
    qs, applied = apply_filterset(InvestigationOrderFilter, params, InvestigationOrder.objects.all())
    qs = with_last_result(qs)
    return qs.order_by("-ordered_at", "-created_at"), applied


def list_results(*, params: Mapping[str, Any]) -> tuple[QuerySet[InvestigationResult], dict[str, Any]]:
    base = InvestigationResult.objects.select_related("order")
    qs, applied = apply_filterset(InvestigationResultFilter, params, base)
    # unobserved results sort last on every backend
    return qs.order_by(F("observed_at").desc(nulls_last=True), "-created_at"), applied
