from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from audit.services import record_audit_event, snapshot
from notifications.models import Notification
from notifications.services import notify
from regions.models import Region, UserRegionAssignment
from scoping.exceptions import InvalidArgument, NotFound
from temporary_access.models import TemporaryAccessGrant

logger = logging.getLogger(__name__)

VALID_ACCESS_LEVELS = frozenset(level for level, _label in UserRegionAssignment.ACCESS_LEVEL_CHOICES)


class RegionNotFound(NotFound):
    default_message = "Region not found."


class UserNotFound(NotFound):
    default_message = "User not found."


def normalize_access_level(value) -> str:
    level = str(value or UserRegionAssignment.ACCESS_READ).strip().lower()
    if level not in VALID_ACCESS_LEVELS:
        raise InvalidArgument(
            f"Invalid access level. Allowed: {', '.join(sorted(VALID_ACCESS_LEVELS))}."
        )
    return level


def get_region(*, region_id=None, region_name=None) -> Region:
    """Look up an active region by id or by case-insensitive name."""

    queryset = Region.objects.filter(is_active=True)
    region = None
    if region_id not in (None, ""):
        try:
            region = queryset.filter(pk=int(region_id)).first()
        except (TypeError, ValueError):
            raise InvalidArgument("region_id must be an integer.") from None
    elif region_name:
        region = queryset.filter(name__iexact=str(region_name).strip()).first()
    else:
        raise InvalidArgument("region_id or region_name is required.")

    if region is None:
        raise RegionNotFound()
    return region


def get_user(user_id):
    User = get_user_model()
    try:
        return User.objects.get(pk=int(user_id))
    except (TypeError, ValueError):
        raise InvalidArgument("user_id must be an integer.") from None
    except User.DoesNotExist:
        raise UserNotFound() from None


def list_user_assignments(user_id):
    return (
        UserRegionAssignment.objects.filter(user_id=user_id)
        .select_related("region")
        .order_by("region__name")
    )


def assign_region(*, user, region: Region, access_level=None, assigned_by=None, request=None) -> UserRegionAssignment:
    """Create or upgrade a PERMANENT assignment.

    A TEMPORARY row materialized from a grant is promoted in place.
    """

    level = normalize_access_level(access_level)
    with transaction.atomic():
        assignment = (
            UserRegionAssignment.objects.select_for_update()
            .filter(user=user, region=region)
            .first()
        )
        before = snapshot(assignment)
        if assignment is None:
            assignment = UserRegionAssignment.objects.create(
                user=user,
                region=region,
                access_level=level,
                source=UserRegionAssignment.SOURCE_PERMANENT,
                assigned_by=assigned_by,
            )
        else:
            assignment.access_level = level
            assignment.source = UserRegionAssignment.SOURCE_PERMANENT
            assignment.assigned_by = assigned_by
            assignment.save(update_fields=["access_level", "source", "assigned_by", "updated_at"])

    record_audit_event(
        actor=assigned_by,
        action="region_assignment.assign",
        resource_type="user_region_assignment",
        resource_id=assignment.pk,
        before=before,
        after=snapshot(assignment),
        request=request,
        metadata={"user_id": user.pk, "region": region.name},
    )
    notify(
        user,
        category=Notification.CATEGORY_REGION_ASSIGNED,
        title=f"Region access: {region.name}",
        body=f"You now have {level} access to {region.name}.",
        metadata={"region_id": region.pk, "access_level": level},
    )
    logger.info(
        "region assigned",
        extra={"user_id": user.pk, "region_id": region.pk, "access_level": level},
    )
    return assignment


def unassign_region(*, user, region: Region, removed_by=None, request=None, now=None) -> None:
    """Remove a PERMANENT assignment.

    If a live temporary grant still covers the region the row is demoted to
    TEMPORARY instead of deleted, so the grant keeps its materialized row.
    """

    now = now or timezone.now()
    with transaction.atomic():
        assignment = (
            UserRegionAssignment.objects.select_for_update()
            .filter(user=user, region=region, source=UserRegionAssignment.SOURCE_PERMANENT)
            .first()
        )
        if assignment is None:
            raise NotFound("Permanent region assignment not found.")

        assignment_id = assignment.pk
        before = snapshot(assignment)
        live_grant = (
            TemporaryAccessGrant.objects.live(now=now)
            .filter(user=user, region=region)
            .order_by("-expires_at")
            .first()
        )
        if live_grant is not None:
            assignment.source = UserRegionAssignment.SOURCE_TEMPORARY
            assignment.access_level = live_grant.access_level
            assignment.save(update_fields=["source", "access_level", "updated_at"])
            after = snapshot(assignment)
        else:
            assignment.delete()
            after = None

    record_audit_event(
        actor=removed_by,
        action="region_assignment.unassign",
        resource_type="user_region_assignment",
        resource_id=assignment_id,
        before=before,
        after=after,
        request=request,
        severity="warning",
        metadata={"user_id": user.pk, "region": region.name},
    )
    notify(
        user,
        category=Notification.CATEGORY_REGION_UNASSIGNED,
        title=f"Region access removed: {region.name}",
        body=f"Your permanent access to {region.name} was removed.",
        metadata={"region_id": region.pk},
    )
