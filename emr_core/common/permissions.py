# emr_core/common/permissions.py

from __future__ import annotations

from typing import FrozenSet, Set

from rest_framework.permissions import BasePermission

# Group/role names (Django auth Group names)
ROLE_ADMIN = "ADMIN"
ROLE_PROVIDER = "PROVIDER"
ROLE_PROVIDER_PENDING = "PROVIDER_PENDING"
ROLE_PROVIDER_REVIEWING = "PROVIDER_REVIEWING"
ROLE_CLERK = "CLERK"
ROLE_USER = "USER"

ALL_ROLES = (
    ROLE_ADMIN,
    ROLE_PROVIDER,
    ROLE_PROVIDER_PENDING,
    ROLE_PROVIDER_REVIEWING,
    ROLE_CLERK,
    ROLE_USER,
)

# Capability vocabulary (fixed)
ENCOUNTER_READ = "encounter.read"
ENCOUNTER_CREATE = "encounter.create"
ENCOUNTER_UPDATE = "encounter.update"

PROGRESS_NOTE_READ = "progress_note.read"
PROGRESS_NOTE_CREATE = "progress_note.create"
PROGRESS_NOTE_UPDATE = "progress_note.update"
PROGRESS_NOTE_FINALIZE = "progress_note.finalize"

INVESTIGATION_READ = "investigation.read"
INVESTIGATION_CREATE = "investigation.create"
INVESTIGATION_UPDATE = "investigation.update"
INVESTIGATION_REVIEW = "investigation.review"

AUDIT_READ = "audit.read"

READ_CAPABILITIES = frozenset({ENCOUNTER_READ, PROGRESS_NOTE_READ, INVESTIGATION_READ})

CLINICAL_CAPABILITIES = READ_CAPABILITIES | frozenset(
    {
        ENCOUNTER_CREATE,
        ENCOUNTER_UPDATE,
        PROGRESS_NOTE_CREATE,
        PROGRESS_NOTE_UPDATE,
        PROGRESS_NOTE_FINALIZE,
        INVESTIGATION_CREATE,
        INVESTIGATION_UPDATE,
        INVESTIGATION_REVIEW,
    }
)

ALL_CAPABILITIES = CLINICAL_CAPABILITIES | frozenset({AUDIT_READ})

ROLE_CAPABILITIES: dict[str, FrozenSet[str]] = {
    ROLE_ADMIN: ALL_CAPABILITIES,
    ROLE_PROVIDER: CLINICAL_CAPABILITIES,
    # Pending/reviewing providers and clerks can read but not author or sign.
    ROLE_PROVIDER_PENDING: READ_CAPABILITIES,
    ROLE_PROVIDER_REVIEWING: READ_CAPABILITIES,
    ROLE_CLERK: READ_CAPABILITIES,
    ROLE_USER: frozenset(),
}


def user_roles(user) -> Set[str]:
    """
    Resolve roles from Django groups.

    - Anonymous users have no roles.
    - Superusers are ADMIN.
    - Authenticated users without a known group are plain USER (no capabilities).
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_ADMIN)
        return roles

    if hasattr(user, "groups"):
        roles.update(name for name in user.groups.values_list("name", flat=True) if name in ROLE_CAPABILITIES)

    if not roles:
        roles.add(ROLE_USER)

    return roles


def capabilities_for_roles(roles) -> FrozenSet[str]:
    caps: Set[str] = set()
    for role in roles:
        caps.update(ROLE_CAPABILITIES.get(role, frozenset()))
    return frozenset(caps)


class CapabilityPermission(BasePermission):
    """
    Boundary check run before any input parsing.

    - Anonymous -> False; DRF turns that into 401 because an authenticator is configured.
    - Authenticated but missing the capability for the HTTP method -> 403.
    - Unknown method => deny by default.

    Services repeat the check through emr_core.iam.guard.require_permission.
    """
    message = "You do not have permission to perform this action."

    # Override in subclasses: HTTP method -> capability
    required_capabilities: dict[str, str] = {}

    def _capability_for(self, request) -> str | None:
        method = request.method.upper()
        if method in ("HEAD", "OPTIONS"):
            method = "GET"
        return self.required_capabilities.get(method)

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        capability = self._capability_for(request)
        if capability is None:
            return False

        allowed = capability in capabilities_for_roles(user_roles(user))
        if not allowed:
            self.message = f"Missing capability: {capability}"
        return allowed


# Specific permission classes for each module

class EncounterPermission(CapabilityPermission):
    required_capabilities = {
        "GET": ENCOUNTER_READ,
        "POST": ENCOUNTER_CREATE,
        "PUT": ENCOUNTER_UPDATE,
    }


class ProgressNotePermission(CapabilityPermission):
    required_capabilities = {
        "GET": PROGRESS_NOTE_READ,
        "POST": PROGRESS_NOTE_CREATE,
        "PUT": PROGRESS_NOTE_UPDATE,
    }


class ProgressNoteFinalizePermission(CapabilityPermission):
    required_capabilities = {
        "POST": PROGRESS_NOTE_FINALIZE,
    }


class InvestigationPermission(CapabilityPermission):
    required_capabilities = {
        "GET": INVESTIGATION_READ,
        "POST": INVESTIGATION_CREATE,
        "PUT": INVESTIGATION_UPDATE,
    }


class InvestigationReviewPermission(CapabilityPermission):
    required_capabilities = {
        "PATCH": INVESTIGATION_REVIEW,
    }


class AuditPermission(CapabilityPermission):
    required_capabilities = {
        "GET": AUDIT_READ,
    }
