from __future__ import annotations

from dataclasses import dataclass, field

from django.db.models import Q
from django.utils import timezone

from regions.models import UserRegionAssignment
from scoping.identity import Identity
from temporary_access.models import TemporaryAccessGrant


@dataclass(frozen=True)
class AccessScope:
    """What an identity may see on the map.

    ``unrestricted`` scopes skip ownership and region filtering entirely; in
    "view as" mode ``target_user_id`` narrows them to one owner. Restricted
    scopes see assets they own plus assets located in ``region_ids``.
    """

    unrestricted: bool
    region_ids: frozenset = field(default_factory=frozenset)
    owner_id: int | None = None
    target_user_id: int | None = None

    def to_q(self, prefix: str = "") -> Q:
        if self.unrestricted:
            if self.target_user_id is not None:
                return Q(**{f"{prefix}created_by_id": self.target_user_id})
            return Q()

        query = Q(pk__in=[])
        if self.owner_id is not None:
            query = Q(**{f"{prefix}created_by_id": self.owner_id})
        if self.region_ids:
            query |= Q(**{f"{prefix}region_id__in": sorted(self.region_ids)})
        return query

    def allows(self, asset) -> bool:
        owner_id = getattr(asset, "created_by_id", None)
        if self.unrestricted:
            return self.target_user_id is None or owner_id == self.target_user_id
        if self.owner_id is not None and owner_id == self.owner_id:
            return True
        region_id = getattr(asset, "region_id", None)
        return region_id is not None and region_id in self.region_ids


def live_grant_region_ids(user_id, *, now=None) -> set:
    now = now or timezone.now()
    return set(
        TemporaryAccessGrant.objects.filter(
            user_id=user_id,
            revoked_at__isnull=True,
            expires_at__gt=now,
            region__is_active=True,
        ).values_list("region_id", flat=True)
    )


def permanent_region_ids(user_id) -> set:
    return set(
        UserRegionAssignment.objects.filter(
            user_id=user_id,
            source=UserRegionAssignment.SOURCE_PERMANENT,
            region__is_active=True,
        ).values_list("region_id", flat=True)
    )


def resolve_scope(identity: Identity, *, now=None) -> AccessScope:
    """Compute the access scope for an identity at ``now``.

    Grant liveness is recomputed from ``expires_at`` on every call, so an
    expired grant stops counting immediately even if the sweep has not run.
    """

    if identity.is_elevated:
        return AccessScope(unrestricted=True, target_user_id=identity.target_user_id)

    if identity.user_id is None:
        return AccessScope(unrestricted=False)

    region_ids = permanent_region_ids(identity.user_id) | live_grant_region_ids(
        identity.user_id, now=now
    )
    return AccessScope(
        unrestricted=False,
        region_ids=frozenset(region_ids),
        owner_id=identity.user_id,
    )
