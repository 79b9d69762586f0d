# emr_core/progress_notes/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from emr_core.audit.metadata import Provenance
from emr_core.common.api.pagination import PageQuerySerializer, paged_response
from emr_core.common.permissions import ProgressNoteFinalizePermission, ProgressNotePermission
from emr_core.iam.actor import actor_for_request
from emr_core.progress_notes.api.serializers import (
    ProgressNoteCreateSerializer,
    ProgressNoteEnvelopeSerializer,
    ProgressNoteFinalizeSerializer,
    ProgressNoteSerializer,
    ProgressNoteUpdateSerializer,
)
from emr_core.progress_notes.services import lifecycle, read_models


def _note_response(note, http_status=status.HTTP_200_OK) -> Response:
    return Response({"note": ProgressNoteSerializer(note).data}, status=http_status)


class ProgressNoteCollectionView(APIView):
    """
    GET  /progress-notes/  list (paginated, filterable)
    POST /progress-notes/  create draft
    PUT  /progress-notes/  update draft by body id (autosave)
    """
    permission_classes = [ProgressNotePermission]

    @extend_schema(
        tags=["Progress Notes"],
        responses={200: ProgressNoteSerializer(many=True)},
        parameters=[
            OpenApiParameter("encounter_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("patient_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("author_id", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("status", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="draft, finalized, amended"),
            OpenApiParameter("keywords", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="Case-insensitive search over SOAP sections and summary."),
            OpenApiParameter("page", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("page_size", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
        ],
    )
    def get(self, request):
        actor = actor_for_request(request)
        paging = PageQuerySerializer(data=request.query_params)
        paging.is_valid(raise_exception=True)

        page = read_models.list_progress_notes(
            actor=actor,
            params=request.query_params,
            page=paging.validated_data["page"],
            page_size=paging.validated_data["page_size"],
            provenance=Provenance.from_request(request, actor),
        )
        return paged_response(page, ProgressNoteSerializer)

    @extend_schema(
        tags=["Progress Notes"],
        request=ProgressNoteCreateSerializer,
        responses={201: ProgressNoteEnvelopeSerializer},
    )
    def post(self, request):
        actor = actor_for_request(request)
        ser = ProgressNoteCreateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        encounter_id = data.pop("encounter_id")
        patient_id = data.pop("patient_id")

        note = lifecycle.create_draft(
            actor=actor,
            encounter_id=encounter_id,
            patient_id=patient_id,
            fields=data,
            provenance=Provenance.from_request(request, actor),
        )
        return _note_response(note, status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Progress Notes"],
        request=ProgressNoteUpdateSerializer,
        responses={200: ProgressNoteEnvelopeSerializer},
    )
    def put(self, request):
        actor = actor_for_request(request)
        ser = ProgressNoteUpdateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        note_id = data.pop("id")

        note = lifecycle.update_draft(
            actor=actor,
            note_id=note_id,
            patch=lifecycle.NotePatch.from_data(data),
            provenance=Provenance.from_request(request, actor),
        )
        return _note_response(note)


class ProgressNoteDetailView(APIView):
    permission_classes = [ProgressNotePermission]

    @extend_schema(tags=["Progress Notes"], responses={200: ProgressNoteEnvelopeSerializer})
    def get(self, request, note_id: UUID):
        actor = actor_for_request(request)
        note = read_models.read_progress_note(
            actor=actor,
            note_id=note_id,
            provenance=Provenance.from_request(request, actor),
        )
        return _note_response(note)


class ProgressNoteFinalizeView(APIView):
    permission_classes = [ProgressNoteFinalizePermission]

    @extend_schema(
        tags=["Progress Notes"],
        request=ProgressNoteFinalizeSerializer,
        responses={200: ProgressNoteEnvelopeSerializer},
    )
    def post(self, request):
        actor = actor_for_request(request)
        ser = ProgressNoteFinalizeSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        note = lifecycle.finalize(
            actor=actor,
            note_id=ser.validated_data["id"],
            signature_hash=ser.validated_data["signature_hash"],
            finalized_at=ser.validated_data.get("finalized_at"),
            provenance=Provenance.from_request(request, actor),
        )
        return _note_response(note)
