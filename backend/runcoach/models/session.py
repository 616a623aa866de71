from sqlalchemy import BigInteger, Column, Float, Integer, JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from runcoach.db import Base


class SessionRecord(Base):
    __tablename__ = "sessions"

    # Insertion order; breaks ties between sessions created in the same ms
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, index=True, nullable=False)

    name = Column(String, nullable=False)
    distance_m = Column(Float, nullable=False)
    moving_time_sec = Column(Integer, nullable=False)

    # Stored so history lists don't need the track; 0 when no distance
    avg_pace_s_per_km = Column(Float, nullable=False, default=0.0)

    elev_gain_m = Column(Float, nullable=False, default=0.0)

    # {distance_km, target_pace_s_per_km, duration_s} or null
    goal = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)

    created_at_ms = Column(BigInteger, nullable=False, index=True)
