# emr_core/investigations/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from emr_core.audit.metadata import Provenance
from emr_core.common.api.pagination import PageQuerySerializer, paged_response
from emr_core.common.permissions import InvestigationPermission, InvestigationReviewPermission
from emr_core.iam.actor import actor_for_request
from emr_core.investigations.api.serializers import (
    InvestigationOrderCreateSerializer,
    InvestigationOrderEnvelopeSerializer,
    InvestigationOrderListItemSerializer,
    InvestigationOrderSerializer,
    InvestigationOrderUpdateSerializer,
    InvestigationResultCreateSerializer,
    InvestigationResultEnvelopeSerializer,
    InvestigationResultSerializer,
    InvestigationResultUpdateSerializer,
    ReviewSerializer,
)
from emr_core.investigations.services import InvestigationService, OrderFields, ResultFields

_PAGING_PARAMS = [
    OpenApiParameter("page", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
    OpenApiParameter("page_size", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
]


def _paging(request) -> dict:
    paging = PageQuerySerializer(data=request.query_params)
    paging.is_valid(raise_exception=True)
    return paging.validated_data


class InvestigationOrderCollectionView(APIView):
    permission_classes = [InvestigationPermission]

    @extend_schema(
        tags=["Investigations"],
        responses={200: InvestigationOrderListItemSerializer(many=True)},
        parameters=[
            OpenApiParameter("patient_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("provider_id", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("encounter_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("status", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="ordered, completed, cancelled"),
            *_PAGING_PARAMS,
        ],
    )
    def get(self, request):
        actor = actor_for_request(request)
        paging = _paging(request)
        page = InvestigationService.list_orders(
            actor=actor,
            params=request.query_params,
            page=paging["page"],
            page_size=paging["page_size"],
            provenance=Provenance.from_request(request, actor),
        )
        return paged_response(page, InvestigationOrderListItemSerializer)

    @extend_schema(
        tags=["Investigations"],
        request=InvestigationOrderCreateSerializer,
        responses={201: InvestigationOrderEnvelopeSerializer},
    )
    def post(self, request):
        actor = actor_for_request(request)
        ser = InvestigationOrderCreateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        order = InvestigationService.create_order(
            actor=actor,
            provenance=Provenance.from_request(request, actor),
            **ser.validated_data,
        )
        return Response({"order": InvestigationOrderSerializer(order).data}, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Investigations"],
        request=InvestigationOrderUpdateSerializer,
        responses={200: InvestigationOrderEnvelopeSerializer},
    )
    def put(self, request):
        actor = actor_for_request(request)
        ser = InvestigationOrderUpdateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        order_id = data.pop("id")

        order = InvestigationService.update_order(
            actor=actor,
            order_id=order_id,
            patch=OrderFields.from_data(data),
            provenance=Provenance.from_request(request, actor),
        )
        return Response({"order": InvestigationOrderSerializer(order).data}, status=status.HTTP_200_OK)


class InvestigationResultCollectionView(APIView):
    permission_classes = [InvestigationPermission]

    @extend_schema(
        tags=["Investigations"],
        responses={200: InvestigationResultSerializer(many=True)},
        parameters=[
            OpenApiParameter("order_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("patient_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("provider_id", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("interpretation", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="normal, abnormal, critical"),
            OpenApiParameter("reviewed", OpenApiTypes.BOOL, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("date_from", OpenApiTypes.DATETIME, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("date_to", OpenApiTypes.DATETIME, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("keywords", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False),
            *_PAGING_PARAMS,
        ],
    )
    def get(self, request):
        actor = actor_for_request(request)
        paging = _paging(request)
        page = InvestigationService.list_results(
            actor=actor,
            params=request.query_params,
            page=paging["page"],
            page_size=paging["page_size"],
            provenance=Provenance.from_request(request, actor),
        )
        return paged_response(page, InvestigationResultSerializer)

    @extend_schema(
        tags=["Investigations"],
        request=InvestigationResultCreateSerializer,
        responses={201: InvestigationResultEnvelopeSerializer},
    )
    def post(self, request):
        actor = actor_for_request(request)
        ser = InvestigationResultCreateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        order_id = data.pop("order_id")

        result = InvestigationService.create_result(
            actor=actor,
            order_id=order_id,
            fields=data,
            provenance=Provenance.from_request(request, actor),
        )
        return Response({"result": InvestigationResultSerializer(result).data}, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Investigations"],
        request=InvestigationResultUpdateSerializer,
        responses={200: InvestigationResultEnvelopeSerializer},
    )
    def put(self, request):
        actor = actor_for_request(request)
        ser = InvestigationResultUpdateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        result_id = data.pop("id")

        result = InvestigationService.update_result(
            actor=actor,
            result_id=result_id,
            patch=ResultFields.from_data(data),
            provenance=Provenance.from_request(request, actor),
        )
        return Response({"result": InvestigationResultSerializer(result).data}, status=status.HTTP_200_OK)


class InvestigationResultReviewView(APIView):
    permission_classes = [InvestigationReviewPermission]

    @extend_schema(
        tags=["Investigations"],
        request=ReviewSerializer,
        responses={200: InvestigationResultEnvelopeSerializer},
    )
    def patch(self, request, result_id: UUID):
        actor = actor_for_request(request)
        ser = ReviewSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        result = InvestigationService.review(
            actor=actor,
            result_id=result_id,
            reviewed=ser.validated_data["reviewed"],
            reviewed_at=ser.validated_data.get("reviewed_at"),
            provenance=Provenance.from_request(request, actor),
        )
        return Response({"result": InvestigationResultSerializer(result).data}, status=status.HTTP_200_OK)
