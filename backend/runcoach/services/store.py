"""Persistence ports.

Each store is constructed with an explicit SQLAlchemy session; nothing here
reaches for global state. Every mutation commits immediately.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from sqlalchemy.orm import Session

from runcoach.models.kv_entry import KVEntry
from runcoach.models.session import SessionRecord
from runcoach.models.session_split import SessionSplit
from runcoach.models.session_track import SessionTrack
from runcoach.schemas.preferences import Preferences
from runcoach.telemetry.geo import TrackPoint
from runcoach.telemetry.state import FinalizedSession, Goal

logger = logging.getLogger(__name__)


def _point_to_json(p: TrackPoint) -> dict:
    return {
        "lat": p.lat,
        "lng": p.lng,
        "ts": p.ts,
        "acc": p.accuracy,
        "ele": p.altitude,
        "spd": p.speed,
        "seg": p.segment,
    }


def _point_from_json(d: dict) -> TrackPoint:
    return TrackPoint(
        lat=d["lat"],
        lng=d["lng"],
        ts=d["ts"],
        accuracy=d.get("acc"),
        altitude=d.get("ele"),
        speed=d.get("spd"),
        segment=d.get("seg", 0),
    )


def _bounds(points: tuple[TrackPoint, ...]) -> dict | None:
    if not points:
        return None
    lats = [p.lat for p in points]
    lons = [p.lng for p in points]
    return {
        "minLat": min(lats),
        "minLon": min(lons),
        "maxLat": max(lats),
        "maxLon": max(lons),
    }


class SessionStore:
    """Append-only, newest-first collection of finalized sessions."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, session: FinalizedSession) -> None:
        self.db.add(
            SessionRecord(
                id=session.id,
                name=session.name,
                distance_m=session.distance_m,
                moving_time_sec=session.moving_time_s,
                avg_pace_s_per_km=session.avg_pace_s_per_km,
                elev_gain_m=session.elevation_gain_m,
                goal=session.goal.to_dict() if session.goal else None,
                created_at_ms=session.created_at_ms,
            )
        )
        # Parent row first so the FK holds on backends that enforce it
        self.db.flush()
        for idx, duration in enumerate(session.splits, start=1):
            self.db.add(SessionSplit(session_id=session.id, idx=idx, duration_sec=duration))
        self.db.add(
            SessionTrack(
                session_id=session.id,
                points=[_point_to_json(p) for p in session.path],
                bounds=_bounds(session.path),
                points_count=len(session.path),
            )
        )
        self.db.commit()
        logger.info("Saved session %s (%s)", session.id, session.name)

    def list_sessions(self) -> list[FinalizedSession]:
        rows = (
            self.db.query(SessionRecord)
            .order_by(SessionRecord.created_at_ms.desc(), SessionRecord.seq.desc())
            .all()
        )
        return [self._load(r) for r in rows]

    def get(self, session_id: str) -> FinalizedSession | None:
        row = self.db.query(SessionRecord).filter(SessionRecord.id == session_id).first()
        return self._load(row) if row else None

    def latest(self) -> FinalizedSession | None:
        row = (
            self.db.query(SessionRecord)
            .order_by(SessionRecord.created_at_ms.desc(), SessionRecord.seq.desc())
            .first()
        )
        return self._load(row) if row else None

    def _load(self, row: SessionRecord) -> FinalizedSession:
        splits = (
            self.db.query(SessionSplit)
            .filter(SessionSplit.session_id == row.id)
            .order_by(SessionSplit.idx)
            .all()
        )
        track = self.db.query(SessionTrack).filter(SessionTrack.session_id == row.id).first()
        points = tuple(_point_from_json(d) for d in (track.points if track else []))
        return FinalizedSession(
            id=row.id,
            name=row.name,
            distance_m=float(row.distance_m),
            moving_time_s=int(row.moving_time_sec),
            avg_pace_s_per_km=float(row.avg_pace_s_per_km or 0.0),
            path=points,
            splits=tuple(int(s.duration_sec) for s in splits),
            elevation_gain_m=float(row.elev_gain_m or 0.0),
            created_at_ms=int(row.created_at_ms),
            goal=Goal.from_dict(row.goal),
        )


class KeyValueStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str, default: Any = None) -> Any:
        row = self.db.get(KVEntry, key)
        if row is None or row.value is None:
            return default
        return copy.deepcopy(row.value)

    def set(self, key: str, value: Any) -> None:
        row = self.db.get(KVEntry, key)
        if row is None:
            self.db.add(KVEntry(key=key, value=value))
        else:
            row.value = value
        self.db.commit()


class PreferencesStore:
    KEY = "prefs"

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def load(self) -> Preferences:
        return Preferences.model_validate(self.kv.get(self.KEY, {}))

    def save(self, prefs: Preferences) -> Preferences:
        self.kv.set(self.KEY, prefs.model_dump(mode="json"))
        return prefs


class ChatLog:
    KEY = "coach.chat"

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def history(self) -> list[dict]:
        return list(self.kv.get(self.KEY, []))

    def append(self, role: str, content: str, ts: int | None = None) -> dict:
        entry = {"role": role, "content": content, "ts": ts}
        # Reassign the whole list: JSON columns don't track in-place mutation
        self.kv.set(self.KEY, [*self.history(), entry])
        return entry
