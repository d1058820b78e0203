from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RequestOrigin:
    correlation_id: str = ""
    ip_address: str = ""
    user_agent: str = ""
    method: str = ""
    path: str = ""


_current_origin: ContextVar[Optional[RequestOrigin]] = ContextVar(
    "current_request_origin", default=None
)


def get_current_origin() -> Optional[RequestOrigin]:
    return _current_origin.get()


def set_current_origin(origin: Optional[RequestOrigin]) -> Token:
    return _current_origin.set(origin)


def reset_current_origin(token: Token) -> None:
    _current_origin.reset(token)


def extract_client_ip(request) -> str:
    if request is None:
        return ""
    # Behind a load balancer X-Forwarded-For holds a chain; keep the left-most hop.
    forwarded_for = (request.META.get("HTTP_X_FORWARDED_FOR") or "").strip()
    if forwarded_for:
        return forwarded_for.split(",", 1)[0].strip()
    return (request.META.get("REMOTE_ADDR") or "").strip()


def origin_from_request(request) -> RequestOrigin:
    return RequestOrigin(
        correlation_id=getattr(request, "correlation_id", "") or "",
        ip_address=extract_client_ip(request),
        user_agent=(request.META.get("HTTP_USER_AGENT") or "").strip(),
        method=(getattr(request, "method", "") or "").upper(),
        path=getattr(request, "path", "") or "",
    )
