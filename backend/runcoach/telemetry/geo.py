"""Location samples and great-circle distance."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from runcoach.core.constants import EARTH_RADIUS_M


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return great-circle distance in meters between two WGS84 points.

    Uses the standard haversine formula; sufficient for per-point distances
    over a typical GPS activity track.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def _optional_reading(value: float | None) -> float | None:
    """Devices report -1 (or NaN) when a reading is unavailable."""
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value) or value < 0:
        return None
    return value


@dataclass(frozen=True, slots=True)
class GeoSample:
    """One raw location observation.

    Attributes:
        lat: Latitude in decimal degrees.
        lng: Longitude in decimal degrees.
        ts: Unix epoch milliseconds.
        accuracy: Horizontal accuracy in meters, if reported.
        altitude: Altitude in meters, if reported.
        speed: Device-reported speed in m/s, if reported.
    """

    lat: float
    lng: float
    ts: int
    accuracy: float | None = None
    altitude: float | None = None
    speed: float | None = None

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and -90.0 <= self.lat <= 90.0):
            raise ValueError(f"latitude out of range: {self.lat}")
        if not (math.isfinite(self.lng) and -180.0 <= self.lng <= 180.0):
            raise ValueError(f"longitude out of range: {self.lng}")
        if self.altitude is not None and not math.isfinite(self.altitude):
            raise ValueError(f"altitude must be finite: {self.altitude}")

    @classmethod
    def from_reading(
        cls,
        lat: float,
        lng: float,
        ts: int,
        accuracy: float | None = None,
        altitude: float | None = None,
        speed: float | None = None,
    ) -> GeoSample:
        """Build a sample from raw device values, normalizing sentinel readings to None."""
        alt = float(altitude) if altitude is not None and math.isfinite(altitude) else None
        return cls(
            lat=float(lat),
            lng=float(lng),
            ts=int(ts),
            accuracy=_optional_reading(accuracy),
            altitude=alt,
            speed=_optional_reading(speed),
        )


@dataclass(frozen=True, slots=True)
class TrackPoint(GeoSample):
    """An accepted sample retained in the run path.

    `segment` counts resumes: points of different segments are never joined
    when distance or elevation gain is computed over the path.
    """

    segment: int = 0

    @classmethod
    def from_sample(cls, sample: GeoSample, segment: int = 0) -> TrackPoint:
        return cls(
            lat=sample.lat,
            lng=sample.lng,
            ts=sample.ts,
            accuracy=sample.accuracy,
            altitude=sample.altitude,
            speed=sample.speed,
            segment=segment,
        )

    def with_altitude(self, altitude: float | None) -> TrackPoint:
        return replace(self, altitude=altitude)


def distance_m(a: GeoSample, b: GeoSample) -> float:
    """Great-circle distance between two samples in meters."""
    return haversine_m(a.lat, a.lng, b.lat, b.lng)
