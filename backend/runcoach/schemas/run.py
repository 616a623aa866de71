from typing import Optional

from pydantic import BaseModel, Field

from runcoach.core.time_utils import (
    format_clock,
    format_pace,
    hhmmss_to_seconds,
    mmss_to_seconds,
    seconds_to_hhmmss,
)
from runcoach.telemetry.geo import GeoSample
from runcoach.telemetry.state import Goal, Phase, RunState


class GoalIn(BaseModel):
    """Either distance_km (+ optional pace) or duration."""

    distance_km: Optional[float] = None
    target_pace: Optional[str] = None  # 'M:SS' per km, e.g. '4:40'
    duration: Optional[str] = None     # 'HH:MM:SS'

    def to_goal(self) -> Goal:
        # Raises ValueError on malformed strings or an inconsistent goal
        return Goal(
            distance_km=self.distance_km,
            target_pace_s_per_km=mmss_to_seconds(self.target_pace) if self.target_pace else None,
            duration_s=hhmmss_to_seconds(self.duration) if self.duration else None,
        )


class GoalOut(BaseModel):
    distance_km: Optional[float] = None
    target_pace: Optional[str] = None
    duration: Optional[str] = None

    @classmethod
    def from_goal(cls, goal: Optional[Goal]) -> Optional["GoalOut"]:
        if goal is None:
            return None
        return cls(
            distance_km=goal.distance_km,
            target_pace=format_clock(goal.target_pace_s_per_km) if goal.target_pace_s_per_km else None,
            duration=seconds_to_hhmmss(goal.duration_s) if goal.duration_s else None,
        )


class RunStart(BaseModel):
    goal: Optional[GoalIn] = None


class SampleIn(BaseModel):
    """One location reading as reported by the device."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    ts: int = Field(..., ge=0)  # epoch ms
    accuracy: Optional[float] = None
    altitude: Optional[float] = None
    speed: Optional[float] = None

    def to_sample(self) -> GeoSample:
        return GeoSample.from_reading(
            lat=self.lat,
            lng=self.lng,
            ts=self.ts,
            accuracy=self.accuracy,
            altitude=self.altitude,
            speed=self.speed,
        )


class RunStatus(BaseModel):
    """Live metrics of the run in progress."""

    phase: Phase
    auto_paused: bool = False
    distance_m: float
    moving_time_sec: int
    moving_time: str        # 'MM:SS' or 'HH:MM:SS'
    current_pace: str       # 'MM:SS' per km
    avg_pace: str
    elev_gain_m: float
    splits: list[int]
    points_count: int
    goal: Optional[GoalOut] = None

    @classmethod
    def from_state(cls, state: RunState, auto_paused: bool = False) -> "RunStatus":
        return cls(
            phase=state.phase,
            auto_paused=auto_paused,
            distance_m=round(state.distance_m, 1),
            moving_time_sec=state.moving_time_s,
            moving_time=format_clock(state.moving_time_s),
            current_pace=format_pace(state.smoothed_speed),
            avg_pace=format_pace(state.average_speed),
            elev_gain_m=round(state.elevation_gain_m, 1),
            splits=list(state.splits),
            points_count=len(state.path),
            goal=GoalOut.from_goal(state.goal),
        )
