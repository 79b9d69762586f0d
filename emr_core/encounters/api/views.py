# emr_core/encounters/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from emr_core.audit.metadata import Provenance
from emr_core.common.api.pagination import PageQuerySerializer, paged_response
from emr_core.common.permissions import EncounterPermission
from emr_core.encounters.api.serializers import (
    EncounterCreateSerializer,
    EncounterListItemSerializer,
    EncounterOutcomeSerializer,
    EncounterUpdateSerializer,
)
from emr_core.encounters.services import EncounterPatch, EncounterService
from emr_core.iam.actor import actor_for_request


def _outcome_response(outcome, http_status=status.HTTP_200_OK) -> Response:
    return Response(EncounterOutcomeSerializer(outcome).data, status=http_status)


class EncounterCollectionView(APIView):
    """
    GET  /encounters/  list with latest note per encounter
    POST /encounters/  create (may start the encounter)
    PUT  /encounters/  partial update by body id
    """
    permission_classes = [EncounterPermission]

    @extend_schema(
        tags=["Encounters"],
        responses={200: EncounterListItemSerializer(many=True)},
        parameters=[
            OpenApiParameter("patient_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("provider_id", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("status", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="scheduled, in_progress, completed, cancelled"),
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

        page = EncounterService.list(
            actor=actor,
            params=request.query_params,
            page=paging.validated_data["page"],
            page_size=paging.validated_data["page_size"],
            provenance=Provenance.from_request(request, actor),
        )
        return paged_response(page, EncounterListItemSerializer)

    @extend_schema(
        tags=["Encounters"],
        request=EncounterCreateSerializer,
        responses={201: EncounterOutcomeSerializer},
    )
    def post(self, request):
        actor = actor_for_request(request)
        ser = EncounterCreateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        outcome = EncounterService.create(
            actor=actor,
            provenance=Provenance.from_request(request, actor),
            **ser.validated_data,
        )
        return _outcome_response(outcome, status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Encounters"],
        request=EncounterUpdateSerializer,
        responses={200: EncounterOutcomeSerializer},
    )
    def put(self, request):
        actor = actor_for_request(request)
        ser = EncounterUpdateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        encounter_id = data.pop("id")

        outcome = EncounterService.update(
            actor=actor,
            encounter_id=encounter_id,
            patch=EncounterPatch.from_data(data),
            provenance=Provenance.from_request(request, actor),
        )
        return _outcome_response(outcome)


class EncounterDetailView(APIView):
    permission_classes = [EncounterPermission]

    @extend_schema(tags=["Encounters"], responses={200: EncounterListItemSerializer})
    def get(self, request, encounter_id: UUID):
        actor = actor_for_request(request)
        enc = EncounterService.retrieve(
            actor=actor,
            encounter_id=encounter_id,
            provenance=Provenance.from_request(request, actor),
        )
        return Response(EncounterListItemSerializer(enc).data, status=status.HTTP_200_OK)
