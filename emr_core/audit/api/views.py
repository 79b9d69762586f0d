# emr_core/audit/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.views import APIView

from emr_core.audit.api.serializers import AuditEventSerializer
from emr_core.audit.metadata import Provenance
from emr_core.audit.services import AuditService
from emr_core.common.api.pagination import PageQuerySerializer, paged_response
from emr_core.common.permissions import AuditPermission
from emr_core.iam.actor import actor_for_request


class AuditEventListView(APIView):
    """
    Browse provenance records (ADMIN only through audit.read).
    """
    permission_classes = [AuditPermission]

    @extend_schema(
        tags=["Audit"],
        responses={200: AuditEventSerializer(many=True)},
        parameters=[
            OpenApiParameter("entity_type", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="encounter, progress_note, investigation_order, investigation_result, audit_event"),
            OpenApiParameter("entity_id", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="Entity id, or 'list' for aggregate views."),
            OpenApiParameter("action", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="view, create, update, review"),
            OpenApiParameter("actor_id", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("date_from", OpenApiTypes.DATETIME, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("date_to", OpenApiTypes.DATETIME, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("page", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("page_size", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
        ],
    )
    def get(self, request):
        actor = actor_for_request(request)
        paging = PageQuerySerializer(data=request.query_params)
        paging.is_valid(raise_exception=True)

        page = AuditService.list_events(
            actor=actor,
            params=request.query_params,
            page=paging.validated_data["page"],
            page_size=paging.validated_data["page_size"],
            provenance=Provenance.from_request(request, actor),
        )
        return paged_response(page, AuditEventSerializer)
