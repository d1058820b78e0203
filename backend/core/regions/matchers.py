from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from django.conf import settings
from django.utils.module_loading import import_string

from regions.models import Region

logger = logging.getLogger(__name__)


class RegionMatcher(ABC):
    """Maps a coordinate to the region that contains it."""

    @abstractmethod
    def match(self, latitude: float, longitude: float) -> Region | None:
        raise NotImplementedError


class RectangleRegionMatcher(RegionMatcher):
    """First active region whose rectangle contains the point, by priority."""

    def match(self, latitude: float, longitude: float) -> Region | None:
        return (
            Region.objects.filter(
                is_active=True,
                lat_min__lte=latitude,
                lat_max__gte=latitude,
                lng_min__lte=longitude,
                lng_max__gte=longitude,
            )
            .order_by("priority", "id")
            .first()
        )


def get_region_matcher() -> RegionMatcher:
    dotted_path = getattr(
        settings,
        "REGION_MATCHER_CLASS",
        "regions.matchers.RectangleRegionMatcher",
    )
    matcher_class = import_string(dotted_path)
    return matcher_class()


def detect_region(latitude: float, longitude: float) -> Region | None:
    region = get_region_matcher().match(latitude, longitude)
    if region is None:
        logger.info(
            "no region matched coordinates",
            extra={"latitude": latitude, "longitude": longitude},
        )
    return region
