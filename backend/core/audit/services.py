from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.db.models import Model
from django.utils import timezone

from audit.models import AuditEntry
from scoping.context import extract_client_ip, get_current_origin

logger = logging.getLogger(__name__)


def _json_safe(value):
    if isinstance(value, Model):
        return value.pk
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(item) for item in value]
    return value


def snapshot(instance, fields=None) -> dict | None:
    """JSON-safe dict of a model instance's concrete fields.

    Foreign keys are stored as their raw id under the attribute name
    (``region_id``), so snapshots never trigger extra queries.
    """

    if instance is None:
        return None
    data = {}
    for model_field in instance._meta.concrete_fields:
        if fields is not None and model_field.name not in fields and model_field.attname not in fields:
            continue
        data[model_field.attname] = _json_safe(getattr(instance, model_field.attname))
    return data


def _origin_fields(request) -> dict:
    if request is not None:
        request_id = (
            request.headers.get("X-Request-ID", "")
            or getattr(request, "correlation_id", "")
            or ""
        )
        return {
            "request_id": request_id.strip()[:64],
            "request_method": (getattr(request, "method", "") or "").upper(),
            "request_path": (getattr(request, "path", "") or "")[:255],
            "ip_address": extract_client_ip(request),
            "user_agent": (request.META.get("HTTP_USER_AGENT") or "").strip(),
        }

    origin = get_current_origin()
    if origin is None:
        return {}
    return {
        "request_id": origin.correlation_id[:64],
        "request_method": origin.method,
        "request_path": origin.path[:255],
        "ip_address": origin.ip_address,
        "user_agent": origin.user_agent,
    }


def record_audit_event(
    *,
    actor,
    action: str,
    resource_type: str,
    resource_id,
    before: dict | None = None,
    after: dict | None = None,
    request=None,
    severity: str = AuditEntry.SEVERITY_INFO,
    metadata: dict | None = None,
) -> AuditEntry | None:
    """Append an audit entry without ever failing the caller.

    The insert runs in its own savepoint; any error is logged and swallowed so
    the mutation being audited still succeeds. Returns the entry, or None when
    recording failed.
    """

    actor_obj = actor if getattr(actor, "is_authenticated", False) else None
    origin = _origin_fields(request)

    try:
        entry = AuditEntry(
            actor=actor_obj,
            actor_username=(getattr(actor_obj, "username", "") or "").strip(),
            action=action,
            severity=severity,
            resource_type=resource_type,
            resource_id="" if resource_id is None else str(resource_id),
            occurred_at=timezone.now(),
            request_id=origin.get("request_id", ""),
            request_method=origin.get("request_method", ""),
            request_path=origin.get("request_path", ""),
            ip_address=origin.get("ip_address") or None,
            user_agent=origin.get("user_agent", ""),
            data_before=_json_safe(before),
            data_after=_json_safe(after),
            metadata=_json_safe(metadata) if isinstance(metadata, dict) else {},
        )
        with transaction.atomic():
            entry.save(force_insert=True)
        return entry
    except Exception:
        logger.exception(
            "audit event could not be recorded",
            extra={
                "action": action,
                "resource_type": resource_type,
                "resource_id": str(resource_id),
            },
        )
        return None


def purge_audit_entries(actor, before=None, request=None) -> int:
    purged = AuditEntry.objects.all().purge(before=before)
    logger.warning(
        "audit entries purged",
        extra={
            "actor_id": getattr(actor, "pk", None),
            "purged": purged,
            "before": before.isoformat() if before else None,
        },
    )
    record_audit_event(
        actor=actor,
        action="audit.purge",
        resource_type="audit_entry",
        resource_id="",
        request=request,
        severity=AuditEntry.SEVERITY_CRITICAL,
        metadata={"purged": purged, "before": before},
    )
    return purged
