from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction
from django.db.models import Count, Q

from audit.services import record_audit_event, snapshot
from infrastructure.models import InfrastructureAsset
from regions.boundaries import InvalidCoordinates, nearest_boundary, validate_coordinates
from regions.matchers import detect_region
from scoping.db import bounded_query
from scoping.exceptions import Forbidden, InvalidArgument, NotFound
from scoping.identity import Identity
from scoping.params import parse_float
from scoping.predicates import AssetPredicate, ScopeClause
from scoping.scope import AccessScope

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "item_type", "status", "unique_id", "notes", "latitude", "longitude")
VALID_TYPES = frozenset(value for value, _label in InfrastructureAsset.TYPE_CHOICES)
VALID_STATUSES = frozenset(value for value, _label in InfrastructureAsset.STATUS_CHOICES)


class AssetNotFound(NotFound):
    default_message = "Infrastructure asset not found."


@dataclass
class ImportResult:
    accepted: list = field(default_factory=list)
    rejected: list = field(default_factory=list)

    @property
    def summary(self) -> dict:
        total = len(self.accepted) + len(self.rejected)
        return {
            "total": total,
            "accepted": len(self.accepted),
            "rejected": len(self.rejected),
        }


def _validate_choices(data: dict) -> None:
    for key, allowed in (("item_type", VALID_TYPES), ("status", VALID_STATUSES)):
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str) or value not in allowed:
            raise InvalidArgument(f"Invalid {key}. Allowed: {', '.join(sorted(allowed))}.")


def get_asset_for(asset_id, scope: AccessScope) -> InfrastructureAsset:
    asset = InfrastructureAsset.objects.select_related("region", "created_by").filter(pk=asset_id).first()
    if asset is None or not scope.allows(asset):
        # Assets outside the scope are reported as missing, not forbidden.
        raise AssetNotFound()
    return asset


def ensure_can_modify(asset: InfrastructureAsset, identity: Identity) -> None:
    if identity.is_elevated or asset.created_by_id == identity.user_id:
        return
    raise Forbidden("Only the owner or an ADMIN/MANAGER can modify this asset.")


def create_asset(*, data: dict, created_by, request=None, source=InfrastructureAsset.SOURCE_MANUAL) -> InfrastructureAsset:
    name = str(data.get("name") or "").strip()
    if not name:
        raise InvalidArgument("name is required.")
    latitude, longitude = validate_coordinates(data.get("latitude"), data.get("longitude"))
    _validate_choices(data)

    asset = InfrastructureAsset(
        name=name,
        item_type=data.get("item_type") or InfrastructureAsset.TYPE_OTHER,
        status=data.get("status") or InfrastructureAsset.STATUS_ACTIVE,
        unique_id=str(data.get("unique_id") or "").strip(),
        notes=data.get("notes") or "",
        latitude=latitude,
        longitude=longitude,
        created_by=created_by if getattr(created_by, "is_authenticated", False) else None,
        region=detect_region(latitude, longitude),
        source=source,
    )
    with transaction.atomic():
        asset.save()

    record_audit_event(
        actor=created_by,
        action="asset.create",
        resource_type="infrastructure_asset",
        resource_id=asset.pk,
        after=snapshot(asset),
        request=request,
    )
    return asset


def update_asset(
    asset: InfrastructureAsset,
    *,
    data: dict,
    identity: Identity,
    actor=None,
    request=None,
    redetect_region: bool = False,
) -> InfrastructureAsset:
    """Apply a partial update.

    The region is kept as detected at creation unless ``redetect_region`` is set.
    """

    ensure_can_modify(asset, identity)
    changes = {key: data[key] for key in EDITABLE_FIELDS if key in data}
    _validate_choices(changes)
    if "name" in changes:
        changes["name"] = str(changes["name"] or "").strip()
        if not changes["name"]:
            raise InvalidArgument("name cannot be blank.")
    if "latitude" in changes or "longitude" in changes:
        latitude, longitude = validate_coordinates(
            changes.get("latitude", asset.latitude),
            changes.get("longitude", asset.longitude),
        )
        changes["latitude"], changes["longitude"] = latitude, longitude

    before = snapshot(asset)
    for key, value in changes.items():
        setattr(asset, key, value)
    if redetect_region:
        asset.region = detect_region(asset.latitude, asset.longitude)

    with transaction.atomic():
        asset.save()

    record_audit_event(
        actor=actor,
        action="asset.update",
        resource_type="infrastructure_asset",
        resource_id=asset.pk,
        before=before,
        after=snapshot(asset),
        request=request,
        metadata={"changed": sorted(changes), "redetect_region": redetect_region},
    )
    return asset


def delete_asset(asset: InfrastructureAsset, *, identity: Identity, actor=None, request=None) -> None:
    ensure_can_modify(asset, identity)
    asset_id = asset.pk
    before = snapshot(asset)
    with transaction.atomic():
        asset.delete()

    record_audit_event(
        actor=actor,
        action="asset.delete",
        resource_type="infrastructure_asset",
        resource_id=asset_id,
        before=before,
        request=request,
        severity="warning",
    )


def import_assets(records, *, imported_by, request=None) -> ImportResult:
    """Create assets from parsed KML placemarks.

    Each record is validated on its own. Records with bad coordinates or
    fields are rejected with a reason and never abort the batch.
    """

    result = ImportResult()
    for index, record in enumerate(records or []):
        if not isinstance(record, dict):
            result.rejected.append({"index": index, "reason": "Record must be an object."})
            continue
        try:
            asset = create_asset(
                data=record,
                created_by=imported_by,
                request=request,
                source=InfrastructureAsset.SOURCE_KML,
            )
        except InvalidCoordinates as exc:
            rejection = {"index": index, "name": record.get("name"), "reason": str(exc)}
            suggestion = _suggest_region(record)
            if suggestion:
                rejection["suggestion"] = suggestion
            result.rejected.append(rejection)
            continue
        except InvalidArgument as exc:
            result.rejected.append({"index": index, "name": record.get("name"), "reason": str(exc)})
            continue
        result.accepted.append({"index": index, "id": asset.pk, "region_id": asset.region_id})

    logger.info(
        "asset import finished",
        extra={
            "user_id": getattr(imported_by, "pk", None),
            "accepted": len(result.accepted),
            "rejected": len(result.rejected),
        },
    )
    return result


def _suggest_region(record: dict) -> str:
    latitude = parse_float(record.get("latitude"))
    longitude = parse_float(record.get("longitude"))
    if latitude is None or longitude is None:
        return ""
    boundary, distance_km = nearest_boundary(latitude, longitude)
    return (
        f"Coordinates might be {distance_km}km from {boundary.name}. "
        "Check if latitude and longitude are swapped."
    )


def _choice_counts(field_name: str, choices) -> dict:
    return {
        value: Count("id", filter=Q(**{field_name: value}))
        for value, _label in choices
    }


def infrastructure_stats(scope: AccessScope) -> dict:
    """Asset totals with per-choice breakdowns over what ``scope`` can see."""

    breakdowns = {
        "by_type": _choice_counts("item_type", InfrastructureAsset.TYPE_CHOICES),
        "by_source": _choice_counts("source", InfrastructureAsset.SOURCE_CHOICES),
        "by_status": _choice_counts("status", InfrastructureAsset.STATUS_CHOICES),
    }
    aggregates = {"total": Count("id")}
    for group, counts in breakdowns.items():
        aggregates.update({f"{group}_{value}": expr for value, expr in counts.items()})

    queryset = AssetPredicate([ScopeClause(scope)]).apply(InfrastructureAsset.objects.all())
    with bounded_query(label="stats"):
        row = queryset.aggregate(**aggregates)

    stats = {"total": row["total"]}
    for group, counts in breakdowns.items():
        stats[group] = {value: row[f"{group}_{value}"] for value in counts}
    return stats
