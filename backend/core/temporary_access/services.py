from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone as dt_timezone

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from audit.models import AuditEntry
from audit.services import record_audit_event, snapshot
from notifications.models import Notification
from notifications.services import grant_reference, notify, recently_notified
from regions.models import Region, UserRegionAssignment
from regions.services import UserNotFound, get_region, normalize_access_level
from scoping.exceptions import Conflict, InvalidArgument, NotFound
from temporary_access.models import TemporaryAccessGrant

logger = logging.getLogger(__name__)


class ActiveGrantConflict(Conflict):
    # Duplicate grant requests answer 400, like other rejected grant input.
    http_status = 400
    code = "active_grant_exists"
    default_message = "User already has active temporary access to this region."


class GrantNotActive(Conflict):
    code = "grant_not_active"
    default_message = "Temporary access is not active."


class GrantNotFound(NotFound):
    default_message = "Temporary access not found."


@dataclass
class SweepResult:
    scanned: int = 0
    expired: int = 0
    assignments_removed: int = 0
    grants: list[int] = field(default_factory=list)


@dataclass
class ExpiryNotificationResult:
    scanned: int = 0
    sent: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class TimeRemaining:
    seconds: int
    expired: bool
    display: str


def time_remaining(grant: TemporaryAccessGrant, now=None) -> TimeRemaining:
    now = now or timezone.now()
    seconds = int((grant.expires_at - now).total_seconds())
    if seconds <= 0:
        return TimeRemaining(seconds=0, expired=True, display="Expired")

    days, remainder = divmod(seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60
    if days:
        display = f"{days}d {hours}h"
    elif hours:
        display = f"{hours}h {minutes}m"
    else:
        display = f"{max(minutes, 1)}m"
    return TimeRemaining(seconds=seconds, expired=False, display=display)


def _coerce_expiry(expires_at) -> datetime:
    if expires_at is None or expires_at == "":
        raise InvalidArgument("expires_at is required.")
    if not isinstance(expires_at, datetime):
        raise InvalidArgument("expires_at must be a datetime.")
    if timezone.is_naive(expires_at):
        expires_at = timezone.make_aware(expires_at, dt_timezone.utc)
    return expires_at.astimezone(dt_timezone.utc)


def _materialize_assignment(grant: TemporaryAccessGrant, granted_by) -> UserRegionAssignment | None:
    """Create or refresh the TEMPORARY assignment backing a grant.

    A PERMANENT row is left untouched and None is returned.
    """

    assignment = (
        UserRegionAssignment.objects.select_for_update()
        .filter(user_id=grant.user_id, region_id=grant.region_id)
        .first()
    )
    if assignment is None:
        return UserRegionAssignment.objects.create(
            user_id=grant.user_id,
            region_id=grant.region_id,
            access_level=grant.access_level,
            source=UserRegionAssignment.SOURCE_TEMPORARY,
            assigned_by=granted_by,
        )
    if assignment.is_permanent:
        return None
    if assignment.access_level != grant.access_level:
        assignment.access_level = grant.access_level
        assignment.save(update_fields=["access_level", "updated_at"])
    return assignment


def _release_assignment(grant: TemporaryAccessGrant, *, now) -> bool:
    """Delete the TEMPORARY assignment once no other live grant needs it.

    Takes the same user-row lock as ``grant_temporary_access`` so a grant
    committing for this (user, region) is seen before the row is deleted.
    """

    get_user_model().objects.select_for_update().filter(pk=grant.user_id).first()
    other_live = (
        TemporaryAccessGrant.objects.live(now=now)
        .filter(user_id=grant.user_id, region_id=grant.region_id)
        .exclude(pk=grant.pk)
        .exists()
    )
    if other_live:
        return False
    deleted, _ = UserRegionAssignment.objects.filter(
        user_id=grant.user_id,
        region_id=grant.region_id,
        source=UserRegionAssignment.SOURCE_TEMPORARY,
    ).delete()
    return deleted > 0


def grant_temporary_access(
    user_id,
    region,
    access_level,
    reason,
    expires_at,
    granted_by,
    request=None,
) -> TemporaryAccessGrant:
    """Grant time-boxed access to one region.

    ``region`` may be a ``Region``, a region id, or a region name
    (case-insensitive). Concurrent grants for the same user are serialized on
    the user row, so at most one active grant per (user, region) can exist.
    """

    if user_id in (None, ""):
        raise InvalidArgument("user_id is required.")
    if region in (None, ""):
        raise InvalidArgument("region_id or region_name is required.")
    level = normalize_access_level(access_level)
    expires_at = _coerce_expiry(expires_at)
    now = timezone.now()
    if expires_at <= now:
        raise InvalidArgument("expires_at must be in the future.")

    if not isinstance(region, Region):
        if isinstance(region, int) or str(region).strip().isdigit():
            region = get_region(region_id=region)
        else:
            region = get_region(region_name=region)

    User = get_user_model()
    try:
        user_pk = int(user_id)
    except (TypeError, ValueError):
        raise InvalidArgument("user_id must be an integer.") from None

    with transaction.atomic():
        user = User.objects.select_for_update().filter(pk=user_pk).first()
        if user is None:
            raise UserNotFound()

        if TemporaryAccessGrant.objects.live(now=now).filter(user=user, region=region).exists():
            raise ActiveGrantConflict()

        grant = TemporaryAccessGrant.objects.create(
            user=user,
            region=region,
            access_level=level,
            reason=(reason or "").strip(),
            granted_by=granted_by if getattr(granted_by, "is_authenticated", False) else None,
            granted_at=now,
            expires_at=expires_at,
        )
        assignment = _materialize_assignment(grant, grant.granted_by)

    record_audit_event(
        actor=granted_by,
        action="temporary_access.grant",
        resource_type="temporary_access_grant",
        resource_id=grant.pk,
        after=snapshot(grant),
        request=request,
        metadata={
            "user_id": user.pk,
            "region": region.name,
            "materialized_assignment_id": getattr(assignment, "pk", None),
        },
    )
    notify(
        user,
        category=Notification.CATEGORY_TEMPORARY_ACCESS_GRANTED,
        title=f"Temporary access granted: {region.name}",
        body=(
            f"You have {level} access to {region.name} until "
            f"{expires_at:%Y-%m-%d %H:%M} UTC."
        ),
        metadata={"grant_id": grant.pk, "region_id": region.pk, "expires_at": expires_at},
        reference=grant_reference(grant.pk),
    )
    logger.info(
        "temporary access granted",
        extra={"grant_id": grant.pk, "user_id": user.pk, "region_id": region.pk},
    )
    return grant


def revoke_temporary_access(grant_id, revoked_by, request=None) -> TemporaryAccessGrant:
    try:
        grant_pk = int(grant_id)
    except (TypeError, ValueError):
        raise GrantNotFound() from None

    now = timezone.now()
    with transaction.atomic():
        grant = (
            TemporaryAccessGrant.objects.select_for_update()
            .select_related("region")
            .filter(pk=grant_pk)
            .first()
        )
        if grant is None:
            raise GrantNotFound()
        status = grant.status_at(now)
        if status != TemporaryAccessGrant.STATUS_ACTIVE:
            raise GrantNotActive(f"Temporary access is already {status}.")

        before = snapshot(grant)
        grant.revoked_at = now
        grant.revoked_by = revoked_by if getattr(revoked_by, "is_authenticated", False) else None
        grant.save(update_fields=["revoked_at", "revoked_by"])
        removed = _release_assignment(grant, now=now)

    record_audit_event(
        actor=revoked_by,
        action="temporary_access.revoke",
        resource_type="temporary_access_grant",
        resource_id=grant.pk,
        before=before,
        after=snapshot(grant),
        request=request,
        severity=AuditEntry.SEVERITY_WARNING,
        metadata={"assignment_removed": removed},
    )
    notify(
        grant.user_id,
        category=Notification.CATEGORY_TEMPORARY_ACCESS_REVOKED,
        title=f"Temporary access revoked: {grant.region.name}",
        body=f"Your temporary access to {grant.region.name} was revoked.",
        metadata={"grant_id": grant.pk, "region_id": grant.region_id},
        reference=grant_reference(grant.pk),
    )
    logger.info(
        "temporary access revoked",
        extra={"grant_id": grant.pk, "user_id": grant.user_id, "assignment_removed": removed},
    )
    return grant


def sweep_expired_grants(now=None) -> SweepResult:
    """Reconcile grants whose expiry has passed.

    Each grant is handled in its own transaction under a row lock and marked
    with ``swept_at``, so the sweep is idempotent and safe to run from several
    workers at once.
    """

    now = now or timezone.now()
    result = SweepResult()
    candidate_ids = list(
        TemporaryAccessGrant.objects.pending_sweep(now=now)
        .order_by("expires_at", "id")
        .values_list("id", flat=True)
    )
    result.scanned = len(candidate_ids)

    for grant_id in candidate_ids:
        with transaction.atomic():
            grant = (
                TemporaryAccessGrant.objects.select_for_update()
                .filter(pk=grant_id)
                .first()
            )
            # Revoked or already swept by a concurrent sweeper.
            if grant is None or grant.revoked_at is not None or grant.swept_at is not None:
                continue
            if grant.expires_at > now:
                continue

            removed = _release_assignment(grant, now=now)
            grant.swept_at = now
            grant.save(update_fields=["swept_at"])

        result.expired += 1
        result.grants.append(grant.pk)
        if removed:
            result.assignments_removed += 1

        record_audit_event(
            actor=None,
            action="temporary_access.expire",
            resource_type="temporary_access_grant",
            resource_id=grant.pk,
            after=snapshot(grant),
            metadata={"assignment_removed": removed},
        )
        notify(
            grant.user_id,
            category=Notification.CATEGORY_TEMPORARY_ACCESS_EXPIRED,
            title="Temporary access expired",
            body="One of your temporary region grants has expired.",
            metadata={"grant_id": grant.pk, "region_id": grant.region_id},
            reference=grant_reference(grant.pk),
        )

    if result.expired:
        logger.info(
            "temporary access sweep finished",
            extra={
                "scanned": result.scanned,
                "expired": result.expired,
                "assignments_removed": result.assignments_removed,
            },
        )
    return result


def notify_expiring_soon(now=None) -> ExpiryNotificationResult:
    """Warn users whose grants expire roughly one day from now.

    Best-effort and at-least-once: a notification referencing the grant within
    the dedup window suppresses a repeat, but a crash between send and commit
    can still produce a duplicate.
    """

    now = now or timezone.now()
    window_start_hours, window_end_hours = getattr(
        settings, "TEMPORARY_ACCESS_WARNING_WINDOW_HOURS", [23, 25]
    )
    dedup_days = int(getattr(settings, "TEMPORARY_ACCESS_WARNING_DEDUP_DAYS", 2))
    result = ExpiryNotificationResult()

    grants = (
        TemporaryAccessGrant.objects.live(now=now)
        .filter(
            expires_at__gte=now + timedelta(hours=window_start_hours),
            expires_at__lte=now + timedelta(hours=window_end_hours),
        )
        .select_related("region")
        .order_by("expires_at", "id")
    )
    for grant in grants:
        result.scanned += 1
        reference = grant_reference(grant.pk)
        if recently_notified(
            grant.user_id,
            category=Notification.CATEGORY_TEMPORARY_ACCESS_EXPIRING,
            reference=reference,
            days=dedup_days,
            now=now,
        ):
            result.skipped += 1
            continue

        remaining = time_remaining(grant, now=now)
        sent = notify(
            grant.user_id,
            category=Notification.CATEGORY_TEMPORARY_ACCESS_EXPIRING,
            title=f"Temporary access expiring: {grant.region.name}",
            body=f"Your access to {grant.region.name} expires in {remaining.display}.",
            metadata={"grant_id": grant.pk, "region_id": grant.region_id, "expires_at": grant.expires_at},
            reference=reference,
        )
        if sent is None:
            result.skipped += 1
        else:
            result.sent += 1

    logger.info(
        "expiry warnings processed",
        extra={"scanned": result.scanned, "sent": result.sent, "skipped": result.skipped},
    )
    return result


def list_grants(status=None, user_id=None):
    queryset = TemporaryAccessGrant.objects.select_related(
        "user", "region", "granted_by", "revoked_by"
    )
    if status:
        if status not in TemporaryAccessGrant.STATUS_CHOICES:
            raise InvalidArgument(
                f"Invalid status. Allowed: {', '.join(TemporaryAccessGrant.STATUS_CHOICES)}."
            )
        queryset = queryset.with_status(status)
    if user_id not in (None, ""):
        try:
            queryset = queryset.filter(user_id=int(user_id))
        except (TypeError, ValueError):
            raise InvalidArgument("user_id must be an integer.") from None
    return queryset.order_by("-granted_at", "-id")


def list_my_access(user, now=None):
    return (
        TemporaryAccessGrant.objects.live(now=now)
        .filter(user=user)
        .select_related("region", "granted_by")
        .order_by("expires_at", "id")
    )
