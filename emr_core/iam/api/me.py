# emr_core/iam/api/me.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from emr_core.iam.actor import actor_for_request
from emr_core.iam.api.schema_serializers import MeResponseSerializer


class MeView(APIView):
    """Who am I, and what may I do? Lets clients hide actions up front."""
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: MeResponseSerializer}, tags=["IAM"])
    def get(self, request):
        actor = actor_for_request(request)
        return Response(
            {
                "id": actor.user_id,
                "username": request.user.get_username(),
                "roles": sorted(actor.roles),
                "capabilities": sorted(actor.capabilities),
            }
        )
