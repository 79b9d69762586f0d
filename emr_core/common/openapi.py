# emr_core/common/openapi.py
from __future__ import annotations

from drf_spectacular.openapi import AutoSchema
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter


class EMRAutoSchema(AutoSchema):
    """
    Documents the optional X-Request-ID correlation header on every operation.
    """

    REQUEST_ID_HEADER = OpenApiParameter(
        name="X-Request-ID",
        type=OpenApiTypes.STR,
        location=OpenApiParameter.HEADER,
        required=False,
        description="Optional correlation id; echoed back and stored in audit provenance.",
    )

    def get_override_parameters(self):
        params = list(super().get_override_parameters() or [])
        if not any(p.name.lower() == "x-request-id" for p in params if isinstance(p, OpenApiParameter)):
            params.append(self.REQUEST_ID_HEADER)
        return params
