# emr_core/appointments/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.db import DatabaseError, transaction
from django.utils import timezone

from emr_core.appointments.models import STARTABLE_STATUSES, Appointment, AppointmentStatus
from emr_core.common.logging import log_domain_event

logger = logging.getLogger(__name__)


class AppointmentService:

    @staticmethod
    def mark_in_progress(*, appointment_id: UUID | None) -> bool:
        """
        Best-effort: move a scheduled/confirmed appointment to in-progress.

        Single conditional UPDATE; returns True only if a row changed.
        A missing appointment, any other status, or a database error on this
        row is logged and reported as False. Never raises, so the caller's
        encounter transition is unaffected.
        """
        if appointment_id is None:
            return False

        try:
            # savepoint keeps the caller's transaction usable on failure
            with transaction.atomic():
                changed = Appointment.objects.filter(
                    id=appointment_id,
                    status__in=STARTABLE_STATUSES,
                ).update(status=AppointmentStatus.IN_PROGRESS, updated_at=timezone.now())
        except DatabaseError:
            logger.warning(
                "Appointment status sync failed",
                exc_info=True,
                extra={"appointment_id": str(appointment_id)},
            )
            return False

        log_domain_event(
            logger,
            "appointment.started" if changed else "appointment.start_skipped",
            entity_type="appointment",
            entity_id=appointment_id,
            result="success" if changed else "skipped",
        )
        return bool(changed)
