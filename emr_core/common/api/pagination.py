from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from django.conf import settings
from django.db.models import QuerySet
from rest_framework import serializers
from rest_framework.response import Response


@dataclass(frozen=True)
class Page:
    items: Sequence[Any]
    total: int
    page: int
    page_size: int


def default_page_size() -> int:
    return int(getattr(settings, "EMR_PAGE_SIZE", 20))


def max_page_size() -> int:
    return int(getattr(settings, "EMR_MAX_PAGE_SIZE", 100))


class PageQuerySerializer(serializers.Serializer):
    """
    ?page=<1-based>&page_size=<n>
    page_size is clamped to EMR_MAX_PAGE_SIZE rather than rejected.
    """
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    page_size = serializers.IntegerField(min_value=1, required=False)

    def validate_page_size(self, value: int) -> int:
        return min(value, max_page_size())

    def validate(self, attrs):
        attrs.setdefault("page_size", default_page_size())
        return attrs


def paginate_queryset(queryset: QuerySet, *, page: int, page_size: int) -> Page:
    """Offset + limit slice with a total count."""
    total = queryset.count()
    offset = (page - 1) * page_size
    items = list(queryset[offset:offset + page_size])
    return Page(items=items, total=total, page=page, page_size=page_size)


def paged_response(page: Page, serializer_class, *, context: dict | None = None) -> Response:
    """
    Shared list contract:
      { items, total, page, page_size }
    """
    ser = serializer_class(page.items, many=True, context=context or {})
    return Response(
        {
            "items": ser.data,
            "total": page.total,
            "page": page.page,
            "page_size": page.page_size,
        }
    )
