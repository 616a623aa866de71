"""Speed fusion and smoothing.

Two speed estimates are available for every accepted point: the speed of
the straight segment from the previous point, and (sometimes) the speed the
device reports. They are blended, clamped to a plausible running range and
fed into an exponential moving average.
"""

from __future__ import annotations

from runcoach.core.constants import (
    MAX_SPEED_MPS,
    MIN_SEGMENT_DT_S,
    SEGMENT_SPEED_WEIGHT,
    SPEED_SMOOTHING_ALPHA,
)
from runcoach.telemetry.geo import GeoSample, distance_m


def segment_speed(prev: GeoSample, new: GeoSample) -> float:
    """Speed over the segment prev -> new in m/s.

    The time delta is floored so near-duplicate timestamps cannot blow up.
    """
    dt = max(MIN_SEGMENT_DT_S, (new.ts - prev.ts) / 1000.0)
    return distance_m(prev, new) / dt


def fused_speed(prev: GeoSample, new: GeoSample) -> float:
    """Blend segment and device speed, clamped to [0, MAX_SPEED_MPS]."""
    seg = segment_speed(prev, new)
    if new.speed is None:
        fused = seg
    else:
        fused = SEGMENT_SPEED_WEIGHT * seg + (1.0 - SEGMENT_SPEED_WEIGHT) * new.speed
    return min(MAX_SPEED_MPS, max(0.0, fused))


def smooth(previous: float, sample_speed: float) -> float:
    """One EMA step. A zero previous estimate is seeded with the new value."""
    if previous == 0:
        return sample_speed
    return SPEED_SMOOTHING_ALPHA * sample_speed + (1.0 - SPEED_SMOOTHING_ALPHA) * previous


def update_speed(prev: GeoSample, new: GeoSample, previous_smoothed: float) -> float:
    """New smoothed speed after accepting `new` right after `prev`."""
    return smooth(previous_smoothed, fused_speed(prev, new))
