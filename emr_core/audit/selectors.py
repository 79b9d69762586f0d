# emr_core/audit/selectors.py
from __future__ import annotations

from typing import Any, Mapping

from django.db.models import QuerySet

from emr_core.audit.filters import AuditEventFilter
from emr_core.audit.models import AuditEvent
from emr_core.common.filters import apply_filterset


def list_audit_events(*, params: Mapping[str, Any]) -> tuple[QuerySet[AuditEvent], dict[str, Any]]:
    qs, applied = apply_filterset(AuditEventFilter, params, AuditEvent.objects.all())
    return qs.order_by("-occurred_at", "-id"), applied


def events_for(*, entity_type: str, entity_id) -> QuerySet[AuditEvent]:
    return AuditEvent.objects.filter(entity_type=entity_type, entity_id=str(entity_id)).order_by("occurred_at")
