# emr_core/iam/guard.py
from __future__ import annotations

from rest_framework.exceptions import NotAuthenticated, PermissionDenied

from emr_core.common.permissions import ALL_CAPABILITIES
from emr_core.iam.actor import Actor


def require_permission(actor: Actor | None, capability: str) -> Actor:
    """
    Fail-closed capability check. No side effects.

    - no actor                  -> NotAuthenticated (401), before anything else
    - capability not in vocabulary or not held -> PermissionDenied (403)
    """
    if actor is None:
        raise NotAuthenticated()

    if capability not in ALL_CAPABILITIES or not actor.can(capability):
        raise PermissionDenied(f"Missing capability: {capability}")

    return actor
