import logging
import time
import uuid

from django.conf import settings

from scoping.context import origin_from_request, reset_current_origin, set_current_origin


class RequestContextMiddleware:
    """Attach a correlation id and the request origin to every API call.

    The origin (client address, user agent, method, path) is published through a
    context variable so service code running deep inside a request can record
    audit entries without threading the request object through every call.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.logger = logging.getLogger(__name__)
        self.correlation_header = getattr(settings, "CORRELATION_ID_HEADER", "X-Correlation-ID")
        self.slow_request_ms = int(getattr(settings, "SLOW_REQUEST_LOG_MS", 2000))

    def __call__(self, request):
        request.correlation_id = self._resolve_correlation_id(request)
        token = set_current_origin(origin_from_request(request))
        started = time.monotonic()
        try:
            response = self.get_response(request)
        finally:
            reset_current_origin(token)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        response[self.correlation_header] = request.correlation_id
        if elapsed_ms >= self.slow_request_ms:
            self.logger.warning(
                "slow request",
                extra={
                    "correlation_id": request.correlation_id,
                    "path": request.path,
                    "method": request.method,
                    "elapsed_ms": elapsed_ms,
                    "status_code": response.status_code,
                },
            )
        return response

    def _resolve_correlation_id(self, request) -> str:
        header_value = (request.headers.get(self.correlation_header, "") or "").strip()
        return header_value[:64] or str(uuid.uuid4())
