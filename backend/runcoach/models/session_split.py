from sqlalchemy import Column, Integer, ForeignKey, String
from runcoach.db import Base


class SessionSplit(Base):
    __tablename__ = "session_splits"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(36), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)

    idx = Column(Integer, nullable=False)  # 1-based kilometer index
    duration_sec = Column(Integer, nullable=False)
