"""Session finalization.

On stop the accumulated path is reconciled with corrected elevations from
the elevation service, gain is recomputed from scratch, and the session is
persisted. The elevation step can only ever improve the record: any
failure falls back to the incremental gain measured during the run.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Sequence

from runcoach.core.config import settings
from runcoach.core.constants import MIN_SAVED_DISTANCE_M, MIN_SAVED_POINTS
from runcoach.core.time_utils import to_local_datetime
from runcoach.services.elevation import ElevationClient
from runcoach.services.store import SessionStore
from runcoach.telemetry.accumulator import elevation_gain_m
from runcoach.telemetry.geo import TrackPoint
from runcoach.telemetry.state import FinalizedSession, RunSummary, average_pace

logger = logging.getLogger(__name__)


def worth_saving(summary: RunSummary) -> bool:
    """Trivial or aborted runs are discarded silently."""
    return summary.distance_m >= MIN_SAVED_DISTANCE_M and len(summary.path) >= MIN_SAVED_POINTS


def apply_elevations(
    path: Sequence[TrackPoint], elevations: Sequence[float | None] | None
) -> tuple[TrackPoint, ...] | None:
    """Replace point altitudes with corrections.

    Unknown values keep the device altitude. Returns None when there is no
    usable correction at all (wrong length or nothing numeric).
    """
    if elevations is None or len(elevations) != len(path):
        return None
    if not any(e is not None for e in elevations):
        return None
    return tuple(
        p if e is None else p.with_altitude(float(e))
        for p, e in zip(path, elevations)
    )


def session_name(created_at_ms: int, tz_name: str | None = None) -> str:
    created = datetime.fromtimestamp(created_at_ms / 1000.0, tz=timezone.utc)
    local = to_local_datetime(created, tz_name or settings.timezone)
    return f"Run {local:%Y-%m-%d %H:%M}"


class SessionFinalizer:
    def __init__(
        self,
        elevation: ElevationClient | None = None,
        store: SessionStore | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.elevation = elevation
        self.store = store
        self.clock = clock

    def lookup(self, summary: RunSummary) -> list[float | None] | None:
        """Fetch corrected elevations; None when there is nothing to look up."""
        if self.elevation is None or not worth_saving(summary):
            return None
        return self.elevation.lookup(summary.path)

    def complete(
        self, summary: RunSummary, elevations: Sequence[float | None] | None
    ) -> FinalizedSession | None:
        """Build and persist the session from a summary and looked-up elevations."""
        if not worth_saving(summary):
            logger.info(
                "Discarded run: %.1f m, %d points", summary.distance_m, len(summary.path)
            )
            return None

        corrected = apply_elevations(summary.path, elevations)
        if corrected is None:
            path = summary.path
            gain = summary.elevation_gain_m
        else:
            path = corrected
            gain = elevation_gain_m(corrected)
            logger.info(
                "Elevation gain reconciled: %.1f m -> %.1f m", summary.elevation_gain_m, gain
            )

        created_at_ms = int(self.clock() * 1000)
        session = FinalizedSession(
            id=str(uuid.uuid4()),
            name=session_name(created_at_ms),
            distance_m=summary.distance_m,
            moving_time_s=summary.moving_time_s,
            avg_pace_s_per_km=average_pace(summary.distance_m, summary.moving_time_s),
            path=path,
            splits=summary.splits,
            elevation_gain_m=gain,
            created_at_ms=created_at_ms,
            goal=summary.goal,
        )
        if self.store is not None:
            self.store.append(session)
        return session

    def finalize(self, summary: RunSummary) -> FinalizedSession | None:
        """Blocking lookup + complete, for callers without an event loop."""
        return self.complete(summary, self.lookup(summary))
