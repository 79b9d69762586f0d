# emr_core/audit/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict
from uuid import UUID

from django.conf import settings
from django.db import DatabaseError, transaction

from emr_core.audit.metadata import AuditMetadata, ViewMetadata
from emr_core.audit.models import LIST_SENTINEL, AuditEntityType, AuditEvent
from emr_core.audit.selectors import list_audit_events
from emr_core.common.api.pagination import Page, paginate_queryset
from emr_core.common.permissions import AUDIT_READ
from emr_core.iam.guard import require_permission

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditRecord:
    id: UUID
    action: str
    entity_type: str
    entity_id: str
    actor_id: int | None
    source: str
    occurred_at: datetime
    metadata: Dict[str, Any]


class AuditService:
    """
    Central provenance writer (append-only).

    The action comes from the metadata schema, so an action can only ever
    carry its own closed set of fields. Write failures are logged and
    swallowed: losing an audit row must never undo a clinical action.
    Call it after the domain mutation, never before.
    """

    @staticmethod
    def record(
        *,
        actor_id: int | None,
        entity_type: str,
        entity_id: UUID | str,
        metadata: AuditMetadata,
        source: str | None = None,
    ) -> AuditRecord | None:
        action = str(metadata.action)
        source = source or getattr(settings, "EMR_AUDIT_SOURCE", "api")

        try:
            payload = metadata.as_dict()
            # savepoint: a failed insert must not poison the caller's transaction
            with transaction.atomic():
                event = AuditEvent.objects.create(
                    actor_id=actor_id,
                    action=action,
                    entity_type=entity_type,
                    entity_id=str(entity_id),
                    source=source,
                    metadata=payload,
                )
        except (DatabaseError, TypeError, ValueError):
            logger.error(
                "Audit write failed",
                exc_info=True,
                extra={
                    "audit_action": action,
                    "entity_type": entity_type,
                    "entity_id": str(entity_id),
                    "actor_id": actor_id,
                },
            )
            return None

        return AuditRecord(
            id=event.id,
            action=event.action,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            actor_id=event.actor_id,
            source=event.source,
            occurred_at=event.occurred_at,
            metadata=event.metadata,
        )

    @staticmethod
    def list_events(*, actor, params, page: int, page_size: int, provenance=None) -> Page:
        """Guarded, paginated audit browsing. The browse itself is audited too."""
        require_permission(actor, AUDIT_READ)

        qs, applied = list_audit_events(params=params)
        result = paginate_queryset(qs, page=page, page_size=page_size)

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.AUDIT_EVENT,
            entity_id=LIST_SENTINEL,
            metadata=ViewMetadata.for_query(
                applied, page=page, page_size=page_size, total=result.total, provenance=provenance,
            ),
        )
        return result
