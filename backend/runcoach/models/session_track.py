from sqlalchemy import Column, Integer, ForeignKey, JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from runcoach.db import Base


class SessionTrack(Base):
    __tablename__ = "session_track"

    session_id = Column(String(36), ForeignKey("sessions.id", ondelete="CASCADE"), primary_key=True)
    points = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)  # [{lat, lng, ts, acc, ele, spd, seg}]
    bounds = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)   # {minLat, minLon, maxLat, maxLon}
    points_count = Column(Integer, nullable=False)
