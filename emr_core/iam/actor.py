# emr_core/iam/actor.py
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet

from emr_core.common.permissions import ROLE_ADMIN, capabilities_for_roles, user_roles


@dataclass(frozen=True)
class Actor:
    """
    The authenticated identity as seen by services: an id plus a
    capability set. Built once per request from the Django user.
    """
    user_id: int
    roles: FrozenSet[str]
    capabilities: FrozenSet[str]

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.roles

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


def actor_for_user(user) -> Actor | None:
    if not user or not getattr(user, "is_authenticated", False):
        return None
    roles = frozenset(user_roles(user))
    return Actor(user_id=int(user.pk), roles=roles, capabilities=capabilities_for_roles(roles))


def actor_for_request(request) -> Actor | None:
    cached = getattr(request, "_emr_actor", None)
    if cached is not None:
        return cached
    actor = actor_for_user(getattr(request, "user", None))
    if actor is not None:
        setattr(request, "_emr_actor", actor)
    return actor
