"""Distance and elevation accumulation over accepted points."""

from __future__ import annotations

from typing import Iterable, Sequence

from runcoach.core.constants import MIN_ASCENT_M
from runcoach.telemetry.geo import GeoSample, TrackPoint, distance_m


def ascent_m(prev: GeoSample, new: GeoSample) -> float:
    """Elevation gain contributed by one step.

    Only ascents above MIN_ASCENT_M count; descents and altimeter noise add 0.
    Both points must carry an altitude.
    """
    if prev.altitude is None or new.altitude is None:
        return 0.0
    delta = new.altitude - prev.altitude
    return delta if delta > MIN_ASCENT_M else 0.0


def _joined_pairs(points: Sequence[TrackPoint]) -> Iterable[tuple[TrackPoint, TrackPoint]]:
    for a, b in zip(points, points[1:]):
        if a.segment == b.segment:
            yield a, b


def path_distance_m(points: Sequence[TrackPoint]) -> float:
    """Total distance along a path, skipping jumps between segments."""
    return sum(distance_m(a, b) for a, b in _joined_pairs(points))


def elevation_gain_m(points: Sequence[TrackPoint]) -> float:
    """Recompute elevation gain of a whole path from scratch."""
    return sum(ascent_m(a, b) for a, b in _joined_pairs(points))
