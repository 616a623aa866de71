"""Coaching cue scheduling.

Both checks are polled on a fixed cadence by the live driver rather than on
every sample, which bounds how often the coaching service is called.
"""

from __future__ import annotations

from dataclasses import dataclass

from runcoach.core.time_utils import format_clock, format_pace, pace_seconds_per_km
from runcoach.telemetry.state import Goal, RunState, average_pace


@dataclass(frozen=True)
class CueSnapshot:
    """What the coaching service gets to see about the run in progress."""

    distance_m: float
    elapsed_s: int
    current_pace_s_per_km: float | None
    avg_pace_s_per_km: float
    elevation_gain_m: float
    last_split_s: int | None
    goal: Goal | None = None

    @classmethod
    def from_state(cls, state: RunState) -> CueSnapshot:
        return cls(
            distance_m=state.distance_m,
            elapsed_s=state.moving_time_s,
            current_pace_s_per_km=pace_seconds_per_km(state.smoothed_speed),
            avg_pace_s_per_km=average_pace(state.distance_m, state.moving_time_s),
            elevation_gain_m=state.elevation_gain_m,
            last_split_s=state.splits[-1] if state.splits else None,
            goal=state.goal,
        )

    def describe(self) -> str:
        current = self.current_pace_s_per_km
        parts = [
            f"dist={self.distance_m / 1000:.2f}km",
            f"time={format_clock(self.elapsed_s)}",
            f"pace={format_pace(1000 / current) if current else '--:--'}",
            f"avgPace={format_pace(1000 / self.avg_pace_s_per_km) if self.avg_pace_s_per_km else '--:--'}",
            f"gain={round(self.elevation_gain_m)}m",
        ]
        if self.last_split_s is not None:
            parts.append(f"lastSplit={format_clock(self.last_split_s)}")
        goal = self.goal
        if goal is not None:
            if goal.distance_km is not None:
                target = f"goal={goal.distance_km:g}km"
                if goal.target_pace_s_per_km:
                    target += f"@{format_clock(goal.target_pace_s_per_km)}/km"
            else:
                target = f"goal={format_clock(goal.duration_s)}"
            parts.append(target)
        return ", ".join(parts)


class CueScheduler:
    """Fires when enough time OR enough distance passed since the last firing."""

    def __init__(self, interval_s: float = 20.0, distance_m: float = 200.0):
        self.interval_s = interval_s
        self.distance_m = distance_m
        self._last_at: float | None = None
        self._last_distance = 0.0

    def reset(self, now: float, distance_m: float = 0.0) -> None:
        self._last_at = now
        self._last_distance = distance_m

    def poll(self, now: float, distance_m: float) -> bool:
        if self._last_at is None:
            self.reset(now, distance_m)
            return False
        due = (
            now - self._last_at >= self.interval_s
            or distance_m - self._last_distance >= self.distance_m
        )
        if due:
            self.reset(now, distance_m)
        return due


class PaceCoach:
    """Periodic check of the current pace against the target pace."""

    def __init__(
        self,
        target_pace_s_per_km: float,
        tolerance_s: float = 6.0,
        interval_s: float = 30.0,
    ):
        self.target_pace_s_per_km = target_pace_s_per_km
        self.tolerance_s = tolerance_s
        self.interval_s = interval_s
        self._last_at: float | None = None

    def reset(self, now: float) -> None:
        self._last_at = now

    def check(self, now: float, speed_mps: float) -> str | None:
        """Return a correction to speak, or None."""
        if self._last_at is not None and now - self._last_at <= self.interval_s:
            return None
        self._last_at = now
        pace = pace_seconds_per_km(speed_mps)
        if pace is None:
            return None
        gap = pace - self.target_pace_s_per_km
        if abs(gap) <= self.tolerance_s:
            return None
        if gap > 0:
            advice = "Pick it up a little to reach your target."
        else:
            advice = "Ease off a little, you are running too fast."
        return f"{format_pace(speed_mps)} per kilometer. {advice}"
