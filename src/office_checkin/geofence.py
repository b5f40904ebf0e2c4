"""Coordinates, great-circle distance and geofence classification."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Union

EARTH_RADIUS_METERS = 6_371_000.0


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")

    @classmethod
    def parse(cls, raw: str) -> "Coordinate":
        """Build a coordinate from a ``"LAT,LON"`` string."""
        parts = [part.strip() for part in raw.split(",")]
        if len(parts) != 2:
            raise ValueError(f"Expected 'LAT,LON', got {raw!r}")
        try:
            latitude, longitude = float(parts[0]), float(parts[1])
        except ValueError as exc:
            raise ValueError(f"Coordinate values must be numbers: {raw!r}") from exc
        return cls(latitude=latitude, longitude=longitude)


class GateStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ALLOWED = "allowed"
    OUT_OF_RANGE = "out_of_range"
    ERROR = "error"


class LocationErrorKind(str, Enum):
    UNAVAILABLE = "unavailable"
    PERMISSION_DENIED = "permission_denied"
    ACQUISITION_FAILED = "acquisition_failed"


@dataclass(frozen=True)
class Allowed:
    distance_meters: float

    @property
    def status(self) -> GateStatus:
        return GateStatus.ALLOWED


@dataclass(frozen=True)
class OutOfRange:
    distance_meters: float

    @property
    def status(self) -> GateStatus:
        return GateStatus.OUT_OF_RANGE


@dataclass(frozen=True)
class GateError:
    message: str
    kind: LocationErrorKind = LocationErrorKind.ACQUISITION_FAILED

    @property
    def status(self) -> GateStatus:
        return GateStatus.ERROR


GateResult = Union[Allowed, OutOfRange, GateError]


def distance_meters(origin: Coordinate, destination: Coordinate) -> float:
    """Haversine distance between two coordinates on a spherical earth."""
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(destination.latitude)
    delta_lat = math.radians(destination.latitude - origin.latitude)
    delta_lon = math.radians(destination.longitude - origin.longitude)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push near-antipodal points a hair past 1.
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def classify(distance: float, allowed_radius_meters: float) -> Union[Allowed, OutOfRange]:
    """Inclusive boundary: a fix exactly on the radius is allowed."""
    if distance <= allowed_radius_meters:
        return Allowed(distance_meters=distance)
    return OutOfRange(distance_meters=distance)
