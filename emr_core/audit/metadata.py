# emr_core/audit/metadata.py
"""
Closed metadata schemas, one per audit action.

Callers cannot hand the audit log an arbitrary dict: every record is built
from one of these dataclasses, and none of them has a slot for free clinical
text. Only ids, counts, enumerated values and timestamps fit.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar, Mapping, Sequence
from uuid import UUID

from emr_core.audit.models import AuditAction

Scalar = str | int | bool | None

# Filter params whose values are free text; only their presence is recorded.
FREE_TEXT_FILTERS = frozenset({"keywords"})


def _scalar(value: Any) -> Scalar:
    if value is None or isinstance(value, (bool, int)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if hasattr(value, "value"):  # TextChoices member
        return str(value.value)
    return str(value)


def _client_ip(request) -> str | None:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.META.get("HTTP_X_REAL_IP") or request.META.get("REMOTE_ADDR") or None


@dataclass(frozen=True)
class Provenance:
    ip: str | None = None
    roles: tuple[str, ...] = ()
    request_id: str | None = None

    @classmethod
    def from_request(cls, request, actor=None) -> "Provenance":
        if request is None:
            return cls()
        return cls(
            ip=_client_ip(request),
            roles=tuple(sorted(actor.roles)) if actor is not None else (),
            request_id=getattr(request, "request_id", None),
        )


@dataclass(frozen=True)
class AuditMetadata:
    action: ClassVar[str]

    provenance: Provenance = field(default_factory=Provenance)

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["provenance"]["roles"] = list(self.provenance.roles)
        return data


@dataclass(frozen=True)
class ViewMetadata(AuditMetadata):
    action: ClassVar[str] = AuditAction.VIEW

    filters: Mapping[str, Scalar] = field(default_factory=dict)
    page: int | None = None
    page_size: int | None = None
    total: int | None = None

    @classmethod
    def for_query(cls, applied_filters: Mapping[str, Any], *, page=None, page_size=None, total=None,
                  provenance: Provenance | None = None) -> "ViewMetadata":
        filters = {
            name: (True if name in FREE_TEXT_FILTERS else _scalar(value))
            for name, value in sorted(applied_filters.items())
        }
        return cls(
            filters=filters,
            page=page,
            page_size=page_size,
            total=total,
            provenance=provenance or Provenance(),
        )


@dataclass(frozen=True)
class CreateMetadata(AuditMetadata):
    action: ClassVar[str] = AuditAction.CREATE

    status: str | None = None
    related_ids: Mapping[str, str | None] = field(default_factory=dict)
    trigger: str | None = None


@dataclass(frozen=True)
class UpdateMetadata(AuditMetadata):
    action: ClassVar[str] = AuditAction.UPDATE

    changed_fields: Sequence[str] = ()
    from_status: str | None = None
    to_status: str | None = None
    transitioned: bool = False
    draft_note_id: str | None = None


@dataclass(frozen=True)
class FinalizeMetadata(AuditMetadata):
    """Signing is an update; the status pair tells it apart from autosaves."""
    action: ClassVar[str] = AuditAction.UPDATE

    from_status: str = "draft"
    to_status: str = "finalized"
    encounter_id: str | None = None
    finalized_at: str | None = None


@dataclass(frozen=True)
class ReviewMetadata(AuditMetadata):
    action: ClassVar[str] = AuditAction.REVIEW

    reviewed: bool = False
    reviewer_id: int | None = None
    reviewed_at: str | None = None
    changed: bool = False
    order_id: str | None = None


def related(**ids: Any) -> dict[str, str | None]:
    """Stringify related identifiers for CreateMetadata.related_ids."""
    return {name: (str(value) if value is not None else None) for name, value in ids.items()}
