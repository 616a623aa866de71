"""Per-kilometer split detection."""

from __future__ import annotations

import math

from runcoach.core.constants import SPLIT_DISTANCE_M


def detect_splits(splits: list[int], distance_m: float, moving_time_s: int) -> list[int]:
    """Append a split for every kilometer boundary crossed since the last call.

    The moving time not yet assigned to a split is shared evenly across the
    kilometers completed in this update; the last one absorbs the rounding.
    With a single crossing the split is simply movingTime - sum(splits).

    Returns the newly appended split times (seconds), oldest first.
    """
    done_km = math.floor(distance_m / SPLIT_DISTANCE_M)
    crossed = done_km - len(splits)
    if crossed <= 0:
        return []

    pending = max(0, moving_time_s - sum(splits))
    share = pending // crossed
    new = [share] * (crossed - 1)
    new.append(pending - share * (crossed - 1))
    splits.extend(new)
    return new
