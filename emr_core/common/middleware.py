from __future__ import annotations

import re
import uuid

from django.utils.deprecation import MiddlewareMixin

from emr_core.common.logging import bind_request_id


class RequestIdMiddleware(MiddlewareMixin):
    """
    Correlates one HTTP request across logs, audit provenance and error bodies.

    Behavior:
      - Reuses a well-formed inbound X-Request-ID, otherwise generates one.
      - Attaches it as request.request_id and binds it for log records.
      - Echoes it back on the response.
    """

    HEADER = "X-Request-ID"
    META_KEY = "HTTP_X_REQUEST_ID"
    _VALID = re.compile(r"^[A-Za-z0-9._\-]{8,128}$")

    def process_request(self, request):
        inbound = request.META.get(self.META_KEY, "")
        request_id = inbound if self._VALID.match(inbound) else uuid.uuid4().hex
        request.request_id = request_id
        bind_request_id(request_id)
        return None

    def process_response(self, request, response):
        request_id = getattr(request, "request_id", None)
        if request_id:
            response[self.HEADER] = request_id
        bind_request_id(None)
        return response
