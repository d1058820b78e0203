from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response


class AccessServiceError(Exception):
    """Base class for failures surfaced to map/access API callers.

    Every subclass carries a stable machine-readable ``code`` and the HTTP status
    the views answer with. Messages are meant for humans and must not leak
    internal identifiers or stack traces.
    """

    code = "internal"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Unexpected error."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class InvalidArgument(AccessServiceError):
    code = "invalid_argument"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request parameters."


class NotFound(AccessServiceError):
    code = "not_found"
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class Conflict(AccessServiceError):
    code = "conflict"
    http_status = status.HTTP_409_CONFLICT
    default_message = "Resource state conflict."


class Forbidden(AccessServiceError):
    code = "forbidden"
    http_status = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed for this identity."


class QueryTimeout(AccessServiceError):
    code = "timeout"
    http_status = status.HTTP_504_GATEWAY_TIMEOUT
    default_message = "Query took too long. Retry with a smaller area or a higher zoom."


class InternalError(AccessServiceError):
    pass


def error_response(exc: AccessServiceError) -> Response:
    return Response({"detail": str(exc), "code": exc.code}, status=exc.http_status)
