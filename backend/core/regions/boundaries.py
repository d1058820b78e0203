from __future__ import annotations

import math
from typing import NamedTuple

from scoping.exceptions import InvalidArgument


class BoundaryRect(NamedTuple):
    name: str
    lat_min: float
    lat_max: float
    lng_min: float
    lng_max: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.lat_min <= latitude <= self.lat_max
            and self.lng_min <= longitude <= self.lng_max
        )

    @property
    def center(self) -> tuple[float, float]:
        return ((self.lat_min + self.lat_max) / 2, (self.lng_min + self.lng_max) / 2)


# Mainland plus Andaman & Nicobar and Lakshadweep.
NATIONAL_ENVELOPE = BoundaryRect("India", 6.5, 35.5, 68.0, 97.5)

# Listed in match order: the first rectangle containing a point wins.
STATE_BOUNDARIES = (
    BoundaryRect("Jammu and Kashmir", 32.3, 37.1, 73.3, 80.3),
    BoundaryRect("Himachal Pradesh", 30.4, 33.3, 75.6, 79.0),
    BoundaryRect("Punjab", 29.5, 32.6, 73.9, 76.9),
    BoundaryRect("Uttarakhand", 28.7, 31.5, 77.6, 81.0),
    BoundaryRect("Haryana", 27.7, 30.9, 74.5, 77.6),
    BoundaryRect("Delhi", 28.4, 28.9, 76.8, 77.3),
    BoundaryRect("Rajasthan", 23.0, 30.2, 69.5, 78.3),
    BoundaryRect("Uttar Pradesh", 23.9, 30.4, 77.1, 84.6),
    BoundaryRect("Madhya Pradesh", 21.1, 26.9, 74.0, 82.8),
    BoundaryRect("Chhattisgarh", 17.8, 24.1, 80.3, 84.4),
    BoundaryRect("Gujarat", 20.1, 24.7, 68.2, 74.5),
    BoundaryRect("Daman and Diu", 20.3, 20.5, 72.8, 73.0),
    BoundaryRect("Dadra and Nagar Haveli", 20.0, 20.3, 72.9, 73.2),
    BoundaryRect("Maharashtra", 15.6, 22.0, 72.6, 80.9),
    BoundaryRect("Goa", 14.9, 15.8, 73.7, 74.4),
    BoundaryRect("Karnataka", 11.5, 18.5, 74.0, 78.6),
    BoundaryRect("Telangana", 15.8, 19.9, 77.2, 81.3),
    BoundaryRect("Andhra Pradesh", 12.6, 19.9, 76.8, 84.8),
    BoundaryRect("Tamil Nadu", 8.0, 13.6, 76.2, 80.3),
    BoundaryRect("Kerala", 8.2, 12.8, 74.8, 77.4),
    BoundaryRect("Puducherry", 11.7, 12.0, 79.6, 79.9),
    BoundaryRect("Bihar", 24.3, 27.5, 83.3, 88.3),
    BoundaryRect("Jharkhand", 21.9, 25.3, 83.3, 87.9),
    BoundaryRect("Odisha", 17.8, 22.6, 81.3, 87.5),
    BoundaryRect("West Bengal", 21.5, 27.2, 85.8, 89.9),
    BoundaryRect("Sikkim", 27.1, 28.1, 88.0, 88.9),
    BoundaryRect("Assam", 24.1, 28.2, 89.7, 96.0),
    BoundaryRect("Arunachal Pradesh", 26.6, 29.5, 91.6, 97.4),
    BoundaryRect("Nagaland", 25.2, 27.0, 93.3, 95.2),
    BoundaryRect("Manipur", 23.8, 25.7, 93.0, 94.8),
    BoundaryRect("Mizoram", 21.9, 24.5, 92.2, 93.5),
    BoundaryRect("Tripura", 22.9, 24.5, 91.0, 92.5),
    BoundaryRect("Meghalaya", 25.0, 26.1, 89.8, 92.8),
    BoundaryRect("Andaman and Nicobar Islands", 6.7, 13.7, 92.2, 94.0),
    BoundaryRect("Lakshadweep", 8.0, 12.4, 71.6, 74.0),
)


class InvalidCoordinates(InvalidArgument):
    code = "invalid_coordinates"
    default_message = "Coordinates are outside the supported area."


def _as_coordinate(value, label: str) -> float:
    if isinstance(value, bool):
        raise InvalidCoordinates(f"{label} must be a number.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidCoordinates(f"{label} must be a number.") from None
    if not math.isfinite(number):
        raise InvalidCoordinates(f"{label} must be a finite number.")
    return number


def validate_coordinates(latitude, longitude) -> tuple[float, float]:
    """Coerce and check a coordinate pair against the national envelope.

    Returns the pair as floats; raises ``InvalidCoordinates`` otherwise.
    """

    lat = _as_coordinate(latitude, "Latitude")
    lng = _as_coordinate(longitude, "Longitude")

    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise InvalidCoordinates(
            "Coordinates out of valid range (lat: -90 to 90, lng: -180 to 180)."
        )
    if not NATIONAL_ENVELOPE.lat_min <= lat <= NATIONAL_ENVELOPE.lat_max:
        raise InvalidCoordinates(
            f"Latitude {lat:.5f} is outside India "
            f"({NATIONAL_ENVELOPE.lat_min} to {NATIONAL_ENVELOPE.lat_max})."
        )
    if not NATIONAL_ENVELOPE.lng_min <= lng <= NATIONAL_ENVELOPE.lng_max:
        raise InvalidCoordinates(
            f"Longitude {lng:.5f} is outside India "
            f"({NATIONAL_ENVELOPE.lng_min} to {NATIONAL_ENVELOPE.lng_max})."
        )
    return lat, lng


def within_national_envelope(latitude: float, longitude: float) -> bool:
    return NATIONAL_ENVELOPE.contains(latitude, longitude)


def nearest_boundary(latitude: float, longitude: float) -> tuple[BoundaryRect, int]:
    """Closest state rectangle by center distance, with a rough distance in km."""

    def distance(rect: BoundaryRect) -> float:
        center_lat, center_lng = rect.center
        return math.hypot(latitude - center_lat, longitude - center_lng)

    nearest = min(STATE_BOUNDARIES, key=distance)
    return nearest, round(distance(nearest) * 111)
