# console_core/common/middleware.py
from __future__ import annotations

import logging
import time

from django.utils.deprecation import MiddlewareMixin

from console_core.common.api.exceptions import ensure_request_id

logger = logging.getLogger(__name__)


class RequestIdMiddleware(MiddlewareMixin):
    """
    Attaches request.request_id (incoming X-Request-Id wins) and echoes it back.

    The same id is used by the error envelope, so a failing response can be
    matched to its log line.
    """

    HEADER = "X-Request-Id"
    META_KEY = "HTTP_X_REQUEST_ID"
    MAX_LEN = 64

    def process_request(self, request):
        incoming = (request.META.get(self.META_KEY) or "").strip()
        if incoming:
            request.request_id = incoming[: self.MAX_LEN]
        ensure_request_id(request)
        request._started_at = time.monotonic()
        return None

    def process_response(self, request, response):
        rid = ensure_request_id(request)
        response[self.HEADER] = rid

        started = getattr(request, "_started_at", None)
        if started is not None and getattr(request, "path", "").startswith("/api/"):
            logger.info(
                "%s %s -> %s (%.1fms) request_id=%s",
                request.method,
                request.path,
                response.status_code,
                (time.monotonic() - started) * 1000,
                rid,
            )
        return response
