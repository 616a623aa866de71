from typing import Optional

from pydantic import BaseModel

from runcoach.core.time_utils import format_clock, format_pace
from runcoach.schemas.run import GoalOut
from runcoach.telemetry.state import FinalizedSession


class TrackPointOut(BaseModel):
    lat: float
    lng: float
    ts: int
    ele: Optional[float] = None
    seg: int = 0


class SessionSummary(BaseModel):
    """Row of the history list."""

    id: str
    name: str
    created_at_ms: int
    distance_km: float
    moving_time: str
    avg_pace: str  # 'MM:SS' per km
    elev_gain_m: float
    splits: list[int]
    goal: Optional[GoalOut] = None

    @classmethod
    def from_session(cls, s: FinalizedSession) -> "SessionSummary":
        return cls(
            id=s.id,
            name=s.name,
            created_at_ms=s.created_at_ms,
            distance_km=round(s.distance_m / 1000, 2),
            moving_time=format_clock(s.moving_time_s),
            avg_pace=format_pace(1000 / s.avg_pace_s_per_km) if s.avg_pace_s_per_km else "--:--",
            elev_gain_m=round(s.elevation_gain_m, 1),
            splits=list(s.splits),
            goal=GoalOut.from_goal(s.goal),
        )


class SessionRead(SessionSummary):
    """Full session including the track."""

    distance_m: float
    moving_time_sec: int
    path: list[TrackPointOut]

    @classmethod
    def from_session(cls, s: FinalizedSession) -> "SessionRead":
        base = SessionSummary.from_session(s).model_dump()
        return cls(
            **base,
            distance_m=s.distance_m,
            moving_time_sec=s.moving_time_s,
            path=[
                TrackPointOut(lat=p.lat, lng=p.lng, ts=p.ts, ele=p.altitude, seg=p.segment)
                for p in s.path
            ],
        )


class StopResult(BaseModel):
    saved: bool
    session: Optional[SessionRead] = None
