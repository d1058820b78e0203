from __future__ import annotations

import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from notifications.models import Notification

logger = logging.getLogger(__name__)


def grant_reference(grant_id) -> str:
    return f"temporary_access_grant:{grant_id}"


def notify(
    user,
    *,
    category: str,
    title: str,
    body: str = "",
    metadata: dict | None = None,
    reference: str = "",
) -> Notification | None:
    """Create an in-app notification. Failures are logged, never raised."""

    user_id = getattr(user, "pk", user)
    try:
        with transaction.atomic():
            return Notification.objects.create(
                user_id=user_id,
                category=category,
                title=title[:200],
                body=body,
                metadata=metadata or {},
                reference=reference,
            )
    except Exception:
        logger.exception(
            "notification could not be created",
            extra={"user_id": user_id, "category": category, "reference": reference},
        )
        return None


def recently_notified(user_id, *, category: str, reference: str, days: int, now=None) -> bool:
    now = now or timezone.now()
    return Notification.objects.filter(
        user_id=user_id,
        category=category,
        reference=reference,
        created_at__gte=now - timedelta(days=days),
    ).exists()


def mark_read(notification: Notification, *, now=None) -> Notification:
    if notification.read_at is None:
        notification.read_at = now or timezone.now()
        notification.save(update_fields=["read_at"])
    return notification
