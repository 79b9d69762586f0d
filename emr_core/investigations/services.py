# emr_core/investigations/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from emr_core.audit.metadata import (
    CreateMetadata,
    Provenance,
    ReviewMetadata,
    UpdateMetadata,
    ViewMetadata,
    related,
)
from emr_core.audit.models import LIST_SENTINEL, AuditEntityType
from emr_core.audit.services import AuditService
from emr_core.common.api.pagination import Page, paginate_queryset
from emr_core.common.logging import log_domain_event
from emr_core.common.patch import MISSING, Patch
from emr_core.common.permissions import (
    INVESTIGATION_CREATE,
    INVESTIGATION_READ,
    INVESTIGATION_REVIEW,
    INVESTIGATION_UPDATE,
)
from emr_core.iam.actor import Actor
from emr_core.iam.guard import require_permission
from emr_core.investigations import selectors
from emr_core.investigations.models import InvestigationOrder, InvestigationResult, OrderStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderFields(Patch):
    status: Any = MISSING
    notes: Any = MISSING


@dataclass(frozen=True)
class ResultFields(Patch):
    code: Any = MISSING
    name: Any = MISSING
    value: Any = MISSING
    units: Any = MISSING
    reference_range_low: Any = MISSING
    reference_range_high: Any = MISSING
    reference_range_text: Any = MISSING
    interpretation: Any = MISSING
    performer: Any = MISSING
    observed_at: Any = MISSING
    attachments: Any = MISSING


class InvestigationService:
    """
    Write and read operations for investigation orders and results.
    - Create and update order / result (review fields are left to review)
    - Review (idempotent sign-off, conditional on the prior reviewed flag)
    - Paginated listing with one aggregate view record per call
    """

    # ----------------------------
    # Orders
    # ----------------------------
    @staticmethod
    @transaction.atomic
    def create_order(
        *,
        actor: Actor | None,
        patient_id: UUID,
        provider_id: int,
        name: str,
        code: str | None = None,
        encounter_id: UUID | None = None,
        status: str = OrderStatus.ORDERED,
        ordered_at: datetime | None = None,
        notes: str | None = None,
        provenance: Provenance | None = None,
    ) -> InvestigationOrder:
        require_permission(actor, INVESTIGATION_CREATE)

        order = InvestigationOrder.objects.create(
            patient_id=patient_id,
            provider_id=provider_id,
            encounter_id=encounter_id,
            code=code,
            name=name,
            status=status,
            ordered_at=ordered_at or timezone.now(),
            notes=notes,
        )

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.INVESTIGATION_ORDER,
            entity_id=order.id,
            metadata=CreateMetadata(
                status=order.status,
                related_ids=related(patient_id=patient_id, encounter_id=encounter_id),
                provenance=provenance or Provenance(),
            ),
        )
        return order

    @staticmethod
    @transaction.atomic
    def update_order(
        *,
        actor: Actor | None,
        order_id: UUID,
        patch: OrderFields,
        provenance: Provenance | None = None,
    ) -> InvestigationOrder:
        require_permission(actor, INVESTIGATION_UPDATE)
        order = selectors.get_order(order_id=order_id)
        previous_status = order.status

        changes = patch.changes()
        if changes:
            InvestigationOrder.objects.filter(id=order_id).update(**changes, updated_at=timezone.now())
            order.refresh_from_db()

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.INVESTIGATION_ORDER,
            entity_id=order.id,
            metadata=UpdateMetadata(
                changed_fields=tuple(sorted(changes)),
                from_status=previous_status,
                to_status=order.status,
                provenance=provenance or Provenance(),
            ),
        )
        return order

    @staticmethod
    def list_orders(
        *,
        actor: Actor | None,
        params: Mapping[str, Any],
        page: int,
        page_size: int,
        provenance: Provenance | None = None,
    ) -> Page:
        require_permission(actor, INVESTIGATION_READ)

        qs, applied = selectors.list_orders(params=params)
        result = paginate_queryset(qs, page=page, page_size=page_size)

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.INVESTIGATION_ORDER,
            entity_id=LIST_SENTINEL,
            metadata=ViewMetadata.for_query(
                applied, page=page, page_size=page_size, total=result.total, provenance=provenance,
            ),
        )
        return result

    # ----------------------------
    # Results
    # ----------------------------
    @staticmethod
    @transaction.atomic
    def create_result(
        *,
        actor: Actor | None,
        order_id: UUID,
        fields: Mapping[str, Any],
        provenance: Provenance | None = None,
    ) -> InvestigationResult:
        require_permission(actor, INVESTIGATION_CREATE)

        data = ResultFields.from_data(fields).changes()
        if not (data.get("name") or data.get("code")):
            raise ValidationError({"name": ["Either name or code is required."]})

        order = selectors.get_order(order_id=order_id)
        result = InvestigationResult.objects.create(order=order, **data)

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.INVESTIGATION_RESULT,
            entity_id=result.id,
            metadata=CreateMetadata(
                status=result.interpretation,
                related_ids=related(order_id=order.id, patient_id=order.patient_id),
                provenance=provenance or Provenance(),
            ),
        )
        return result

    @staticmethod
    @transaction.atomic
    def update_result(
        *,
        actor: Actor | None,
        result_id: UUID,
        patch: ResultFields,
        provenance: Provenance | None = None,
    ) -> InvestigationResult:
        """
        Overwrite the supplied report fields. reviewed, reviewer_id and
        reviewed_at are not in ResultFields; only review() writes them.
        """
        require_permission(actor, INVESTIGATION_UPDATE)
        result = selectors.get_result(result_id=result_id)

        changes = patch.changes()
        name = changes.get("name", result.name)
        code = changes.get("code", result.code)
        if not (name or code):
            raise ValidationError({"name": ["Either name or code is required."]})

        if changes:
            InvestigationResult.objects.filter(id=result_id).update(**changes, updated_at=timezone.now())
            result = selectors.get_result(result_id=result_id)

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.INVESTIGATION_RESULT,
            entity_id=result.id,
            metadata=UpdateMetadata(
                changed_fields=tuple(sorted(changes)),
                provenance=provenance or Provenance(),
            ),
        )
        return result

    @staticmethod
    def list_results(
        *,
        actor: Actor | None,
        params: Mapping[str, Any],
        page: int,
        page_size: int,
        provenance: Provenance | None = None,
    ) -> Page:
        require_permission(actor, INVESTIGATION_READ)

        qs, applied = selectors.list_results(params=params)
        result = paginate_queryset(qs, page=page, page_size=page_size)

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.INVESTIGATION_RESULT,
            entity_id=LIST_SENTINEL,
            metadata=ViewMetadata.for_query(
                applied, page=page, page_size=page_size, total=result.total, provenance=provenance,
            ),
        )
        return result

    # ----------------------------
    # Review (sign-off)
    # ----------------------------
    @staticmethod
    @transaction.atomic
    def review(
        *,
        actor: Actor | None,
        result_id: UUID,
        reviewed: bool = True,
        reviewed_at: datetime | None = None,
        provenance: Provenance | None = None,
    ) -> InvestigationResult:
        """
        reviewed=True on an unreviewed result stamps the actor and time.
        On an already reviewed result it is a no-op that returns the
        original reviewer and time; re-attribution is not inferred here.

        reviewed=False clears all three review fields together.

        Both directions are one conditional UPDATE keyed on the current
        flag, and every call writes a review record with a `changed` flag.
        """
        require_permission(actor, INVESTIGATION_REVIEW)
        selectors.get_result(result_id=result_id)

        now = timezone.now()
        if reviewed:
            changed = bool(
                InvestigationResult.objects.filter(id=result_id, reviewed=False).update(
                    reviewed=True,
                    reviewer_id=actor.user_id,
                    reviewed_at=reviewed_at or now,
                    updated_at=now,
                )
            )
        else:
            changed = bool(
                InvestigationResult.objects.filter(id=result_id, reviewed=True).update(
                    reviewed=False,
                    reviewer_id=None,
                    reviewed_at=None,
                    updated_at=now,
                )
            )

        result = selectors.get_result(result_id=result_id)

        AuditService.record(
            actor_id=actor.user_id,
            entity_type=AuditEntityType.INVESTIGATION_RESULT,
            entity_id=result.id,
            metadata=ReviewMetadata(
                reviewed=result.reviewed,
                reviewer_id=result.reviewer_id,
                reviewed_at=result.reviewed_at.isoformat() if result.reviewed_at else None,
                changed=changed,
                order_id=str(result.order_id),
                provenance=provenance or Provenance(),
            ),
        )

        if changed:
            log_domain_event(
                logger,
                "investigation.reviewed" if reviewed else "investigation.unreviewed",
                entity_type="investigation_result",
                entity_id=result.id,
                reviewer_id=result.reviewer_id,
            )
        return result
