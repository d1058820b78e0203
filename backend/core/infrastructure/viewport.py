from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from django.conf import settings

from infrastructure.models import InfrastructureAsset
from scoping.db import bounded_query
from scoping.exceptions import InvalidArgument
from scoping.params import parse_float, parse_int
from scoping.predicates import (
    AssetPredicate,
    BoundingBoxClause,
    FieldEqualsClause,
    FieldInClause,
    ScopeClause,
    TextSearchClause,
)
from scoping.scope import AccessScope

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 1000
ITEM_FIELDS = ("id", "name", "latitude", "longitude", "item_type", "status")
FILTER_FIELDS = ("item_type", "status", "source", "region_id")


@dataclass(frozen=True)
class ViewportBounds:
    north: float
    south: float
    east: float
    west: float

    @classmethod
    def from_params(cls, params) -> "ViewportBounds":
        """Parse ``north``, ``south``, ``east`` and ``west`` from query params."""

        raw = {edge: params.get(edge) for edge in ("north", "south", "east", "west")}
        missing = [edge for edge, value in raw.items() if value in (None, "")]
        if missing:
            raise InvalidArgument(
                "Missing viewport bounds (north, south, east, west required)."
            )

        parsed = {edge: parse_float(value) for edge, value in raw.items()}
        if any(value is None for value in parsed.values()):
            raise InvalidArgument("Invalid viewport bounds (must be finite numbers).")

        bounds = cls(**parsed)
        if bounds.south > bounds.north or bounds.west > bounds.east:
            raise InvalidArgument("Invalid viewport bounds (south/west must not exceed north/east).")
        return bounds

    def as_clause(self) -> BoundingBoxClause:
        return BoundingBoxClause(
            south=self.south,
            west=self.west,
            north=self.north,
            east=self.east,
        )

    def as_dict(self) -> dict:
        return {"north": self.north, "south": self.south, "east": self.east, "west": self.west}


@dataclass
class ViewportResult:
    items: list = field(default_factory=list)
    count: int = 0
    limit: int = DEFAULT_LIMIT
    limited: bool = False
    query_time_ms: int = 0


def default_limit_for_zoom(zoom: int | None) -> int:
    if zoom is None:
        return DEFAULT_LIMIT
    if zoom <= 8:
        return 500
    if zoom <= 12:
        return 1000
    return 2000


def resolve_limit(limit, zoom: int | None) -> int:
    max_limit = int(getattr(settings, "MAP_VIEWPORT_MAX_LIMIT", 5000))
    if limit in (None, ""):
        return min(default_limit_for_zoom(zoom), max_limit)
    parsed = parse_int(limit)
    if parsed is None:
        raise InvalidArgument("limit must be an integer.")
    return max(1, min(parsed, max_limit))


def parse_zoom(raw_zoom) -> int | None:
    if raw_zoom in (None, ""):
        return None
    zoom = parse_float(raw_zoom)
    if zoom is None:
        raise InvalidArgument("zoom must be a number.")
    return int(zoom)


def build_predicate(
    bounds: ViewportBounds,
    scope: AccessScope,
    filters: dict | None = None,
    *,
    visible_only: bool = False,
) -> AssetPredicate:
    predicate = AssetPredicate([bounds.as_clause(), ScopeClause(scope)])
    filters = filters or {}
    for field_name in FILTER_FIELDS:
        value = filters.get(field_name)
        if value not in (None, ""):
            predicate.add(FieldEqualsClause(field_name, value))
    search = (filters.get("search") or "").strip()
    if search:
        predicate.add(TextSearchClause(search, fields=("name", "unique_id")))
    if visible_only:
        predicate.add(FieldInClause("status", InfrastructureAsset.VISIBLE_STATUSES))
    return predicate


def query_viewport(
    bounds: ViewportBounds,
    *,
    zoom: int | None,
    scope: AccessScope,
    filters: dict | None = None,
    limit=None,
    visible_only: bool = False,
) -> ViewportResult:
    """Assets inside ``bounds`` the scope may see, capped at the applied limit.

    ``limited`` is set when the result filled the limit, meaning more assets
    may exist in the viewport.
    """

    applied_limit = resolve_limit(limit, zoom)
    predicate = build_predicate(bounds, scope, filters, visible_only=visible_only)
    queryset = predicate.apply(InfrastructureAsset.objects.all())

    fields = ITEM_FIELDS
    if visible_only:
        fields = ITEM_FIELDS + ("region_id", "region__name")

    started = time.monotonic()
    with bounded_query(label="viewport"):
        rows = list(queryset.order_by("id").values(*fields)[:applied_limit])
    query_time_ms = int((time.monotonic() - started) * 1000)

    if visible_only:
        for row in rows:
            row["region_name"] = row.pop("region__name")

    result = ViewportResult(
        items=rows,
        count=len(rows),
        limit=applied_limit,
        limited=len(rows) >= applied_limit,
        query_time_ms=query_time_ms,
    )
    logger.debug(
        "viewport query",
        extra={
            "count": result.count,
            "limit": applied_limit,
            "zoom": zoom,
            "query_time_ms": query_time_ms,
            "unrestricted": scope.unrestricted,
        },
    )
    return result
