"""Run state and the records derived from it."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from runcoach.telemetry.geo import TrackPoint


class Phase(str, Enum):
    idle = "idle"
    running = "running"
    paused = "paused"
    stopped = "stopped"


@dataclass(frozen=True)
class Goal:
    """Either a distance target (with an optional pace) or a duration target."""

    distance_km: float | None = None
    target_pace_s_per_km: int | None = None
    duration_s: int | None = None

    def __post_init__(self) -> None:
        if (self.distance_km is None) == (self.duration_s is None):
            raise ValueError("goal needs exactly one of distance_km or duration_s")
        if self.distance_km is not None and self.distance_km <= 0:
            raise ValueError("distance_km must be > 0")
        if self.duration_s is not None and self.duration_s <= 0:
            raise ValueError("duration_s must be > 0")
        if self.target_pace_s_per_km is not None:
            if self.duration_s is not None:
                raise ValueError("target pace only applies to a distance goal")
            if self.target_pace_s_per_km <= 0:
                raise ValueError("target_pace_s_per_km must be > 0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "distance_km": self.distance_km,
            "target_pace_s_per_km": self.target_pace_s_per_km,
            "duration_s": self.duration_s,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Goal | None:
        if not data:
            return None
        return cls(
            distance_km=data.get("distance_km"),
            target_pace_s_per_km=data.get("target_pace_s_per_km"),
            duration_s=data.get("duration_s"),
        )


def average_pace(distance_m: float, moving_time_s: float) -> float:
    """Average pace in seconds per km; 0 when nothing was covered yet."""
    if distance_m <= 0 or moving_time_s <= 0:
        return 0.0
    return moving_time_s / (distance_m / 1000.0)


@dataclass
class RunState:
    """Mutable aggregate owned by one RunStateMachine."""

    phase: Phase = Phase.idle
    path: list[TrackPoint] = field(default_factory=list)
    distance_m: float = 0.0
    moving_time_s: int = 0
    smoothed_speed: float = 0.0
    elevation_gain_m: float = 0.0
    splits: list[int] = field(default_factory=list)
    goal: Goal | None = None

    @property
    def average_speed(self) -> float:
        if self.distance_m <= 0 or self.moving_time_s <= 0:
            return 0.0
        return self.distance_m / self.moving_time_s

    @property
    def last_point(self) -> TrackPoint | None:
        return self.path[-1] if self.path else None


@dataclass(frozen=True)
class RunSummary:
    """Snapshot of a run taken at stop, handed to the finalizer."""

    path: tuple[TrackPoint, ...]
    distance_m: float
    moving_time_s: int
    splits: tuple[int, ...]
    elevation_gain_m: float
    goal: Goal | None = None

    @classmethod
    def from_state(cls, state: RunState) -> RunSummary:
        return cls(
            path=tuple(state.path),
            distance_m=state.distance_m,
            moving_time_s=state.moving_time_s,
            splits=tuple(state.splits),
            elevation_gain_m=state.elevation_gain_m,
            goal=state.goal,
        )


@dataclass(frozen=True)
class FinalizedSession:
    """A completed run as persisted. Never mutated after creation."""

    id: str
    name: str
    distance_m: float
    moving_time_s: int
    avg_pace_s_per_km: float
    path: tuple[TrackPoint, ...]
    splits: tuple[int, ...]
    elevation_gain_m: float
    created_at_ms: int
    goal: Goal | None = None
