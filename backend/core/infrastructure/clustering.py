from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.db.models import Avg, Count, ExpressionWrapper, F, FloatField, Q, Value
from django.db.models.functions import Round

from infrastructure.models import InfrastructureAsset
from infrastructure.viewport import ViewportBounds, build_predicate
from scoping.db import bounded_query
from scoping.exceptions import InvalidArgument
from scoping.params import parse_float
from scoping.scope import AccessScope

logger = logging.getLogger(__name__)

DEFAULT_ZOOM = 10

# Annotation name per asset type, used for per-cell type counts.
TYPE_COUNT_FIELDS = {
    item_type: f"type_{item_type.lower()}"
    for item_type, _label in InfrastructureAsset.TYPE_CHOICES
}


@dataclass
class ClusterResult:
    clusters: list = field(default_factory=list)
    grid_size: float = 0.1
    truncated: bool = False


def should_cluster(zoom: int | None) -> bool:
    max_zoom = int(getattr(settings, "MAP_CLUSTER_MAX_ZOOM", 15))
    return zoom is None or zoom < max_zoom


def grid_size_for_zoom(zoom: int | None) -> float:
    zoom = DEFAULT_ZOOM if zoom is None else zoom
    if zoom <= 5:
        return 2.0
    if zoom <= 8:
        return 0.5
    if zoom <= 11:
        return 0.1
    return 0.05


def resolve_grid_size(grid_size, zoom: int | None) -> float:
    if grid_size in (None, ""):
        return grid_size_for_zoom(zoom)
    parsed = parse_float(grid_size)
    if parsed is None or parsed <= 0:
        raise InvalidArgument("gridSize must be a positive number.")
    return parsed


def _cell(field_name: str, grid: float):
    return ExpressionWrapper(
        Round(F(field_name) / Value(grid)) * Value(grid),
        output_field=FloatField(),
    )


def cluster_assets(
    bounds: ViewportBounds,
    *,
    zoom: int | None,
    scope: AccessScope,
    grid_size=None,
    region_id=None,
) -> ClusterResult:
    """Aggregate visible assets into grid cells computed by the database.

    Cells are ordered by asset count, densest first. When more cells than
    ``MAP_CLUSTER_LIMIT`` exist the sparsest are dropped and ``truncated`` is set.
    """

    grid = resolve_grid_size(grid_size, zoom)
    cell_limit = int(getattr(settings, "MAP_CLUSTER_LIMIT", 1000))
    predicate = build_predicate(
        bounds,
        scope,
        {"region_id": region_id},
        visible_only=True,
    )

    type_counts = {
        annotation: Count("id", filter=Q(item_type=item_type))
        for item_type, annotation in TYPE_COUNT_FIELDS.items()
    }
    queryset = (
        predicate.apply(InfrastructureAsset.objects.all())
        .annotate(cell_lat=_cell("latitude", grid), cell_lng=_cell("longitude", grid))
        .values("cell_lat", "cell_lng")
        .annotate(
            count=Count("id"),
            center_lat=Avg("latitude"),
            center_lng=Avg("longitude"),
            **type_counts,
        )
        .order_by("-count", "cell_lat", "cell_lng")
    )

    with bounded_query(label="clusters"):
        rows = list(queryset[: cell_limit + 1])

    truncated = len(rows) > cell_limit
    if truncated:
        rows = rows[:cell_limit]
        logger.info(
            "cluster result truncated",
            extra={"cell_limit": cell_limit, "grid_size": grid, "zoom": zoom},
        )

    clusters = []
    for row in rows:
        counts = {
            item_type: row[annotation]
            for item_type, annotation in TYPE_COUNT_FIELDS.items()
            if row[annotation]
        }
        clusters.append(
            {
                "latitude": row["center_lat"],
                "longitude": row["center_lng"],
                "cell_latitude": row["cell_lat"],
                "cell_longitude": row["cell_lng"],
                "count": row["count"],
                "type_counts": counts,
                "pop_count": counts.get(InfrastructureAsset.TYPE_POP, 0),
                "subpop_count": counts.get(InfrastructureAsset.TYPE_SUBPOP, 0),
                "types": sorted(counts),
            }
        )
    return ClusterResult(clusters=clusters, grid_size=grid, truncated=truncated)
