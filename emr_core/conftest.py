# emr_core/conftest.py
import uuid

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.utils import timezone
from rest_framework.test import APIClient

from emr_core.common.permissions import ROLE_ADMIN, ROLE_CLERK, ROLE_PROVIDER


def _make_user(username: str, *groups: str):
    User = get_user_model()
    user = User.objects.create_user(username=username, password="testpass", is_active=True)
    for name in groups:
        group, _ = Group.objects.get_or_create(name=name)
        user.groups.add(group)
    return user


@pytest.fixture
def provider(db):
    return _make_user("dr-house", ROLE_PROVIDER)


@pytest.fixture
def other_provider(db):
    return _make_user("dr-wilson", ROLE_PROVIDER)


@pytest.fixture
def admin_user(db):
    return _make_user("admin", ROLE_ADMIN)


@pytest.fixture
def clerk(db):
    return _make_user("front-desk", ROLE_CLERK)


@pytest.fixture
def plain_user(db):
    return _make_user("nobody")


@pytest.fixture
def client_for():
    """client_for(user) -> authenticated APIClient"""
    def _make(user):
        c = APIClient()
        c.force_authenticate(user=user)
        return c
    return _make


@pytest.fixture
def api_client(client_for, provider):
    return client_for(provider)


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def actor(provider):
    from emr_core.iam.actor import actor_for_user

    return actor_for_user(provider)


@pytest.fixture
def admin_actor(admin_user):
    from emr_core.iam.actor import actor_for_user

    return actor_for_user(admin_user)


@pytest.fixture
def patient_id():
    return uuid.uuid4()


@pytest.fixture
def appointment(db, provider, patient_id):
    from emr_core.appointments.models import Appointment

    return Appointment.objects.create(
        patient_id=patient_id,
        provider_id=provider.id,
        scheduled_for=timezone.now(),
    )


@pytest.fixture
def encounter(actor, provider, patient_id):
    """Scheduled encounter created through the service (audit rows included)."""
    from emr_core.encounters.services import EncounterService

    return EncounterService.create(
        actor=actor,
        patient_id=patient_id,
        provider_id=provider.id,
        type="follow-up",
        start_time=timezone.now(),
    ).encounter


@pytest.fixture
def started_encounter(actor, provider, patient_id):
    from emr_core.encounters.models import EncounterStatus
    from emr_core.encounters.services import EncounterService

    return EncounterService.create(
        actor=actor,
        patient_id=patient_id,
        provider_id=provider.id,
        type="follow-up",
        start_time=timezone.now(),
        status=EncounterStatus.IN_PROGRESS,
    )


@pytest.fixture
def draft_note(started_encounter):
    from emr_core.progress_notes.models import ProgressNote

    return ProgressNote.objects.get(id=started_encounter.draft_note_id)


@pytest.fixture
def investigation_order(actor, provider, patient_id):
    from emr_core.investigations.services import InvestigationService

    return InvestigationService.create_order(
        actor=actor,
        patient_id=patient_id,
        provider_id=provider.id,
        code="CBC",
        name="Complete blood count",
    )


@pytest.fixture
def investigation_result(actor, investigation_order):
    from emr_core.investigations.services import InvestigationService

    return InvestigationService.create_result(
        actor=actor,
        order_id=investigation_order.id,
        fields={
            "code": "HGB",
            "name": "Hemoglobin",
            "value": "13.5",
            "units": "g/dL",
            "interpretation": "normal",
            "observed_at": timezone.now(),
        },
    )
