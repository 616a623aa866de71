"""Geo-sample quality filter."""

from __future__ import annotations

from runcoach.core.constants import MAX_ACCURACY_M, MIN_STEP_M
from runcoach.telemetry.geo import GeoSample, distance_m


def accept(sample: GeoSample, last: GeoSample | None) -> bool:
    """Decide whether a raw sample joins the path.

    Rules, in order:
      - reject when the reported accuracy is worse than MAX_ACCURACY_M
      - reject when it moved less than MIN_STEP_M from the last accepted point
        (positional jitter while standing still)
      - otherwise accept
    """
    if sample.accuracy is not None and sample.accuracy > MAX_ACCURACY_M:
        return False
    if last is not None and distance_m(last, sample) < MIN_STEP_M:
        return False
    return True
