import math
import os

# Must be set before anything imports runcoach.core.config
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("COACH_API_KEY", "")

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from runcoach.core.constants import EARTH_RADIUS_M  # noqa: E402
from runcoach.db import Base, make_engine  # noqa: E402
from runcoach.models.kv_entry import KVEntry  # noqa: E402,F401
from runcoach.models.session import SessionRecord  # noqa: E402,F401
from runcoach.models.session_split import SessionSplit  # noqa: E402,F401
from runcoach.models.session_track import SessionTrack  # noqa: E402,F401
from runcoach.telemetry.geo import GeoSample  # noqa: E402

START_LAT = 45.0
START_LNG = 7.0
T0 = 1_700_000_000_000


def lat_after(meters: float, lat: float = START_LAT) -> float:
    """Latitude reached by walking `meters` due north (exact for haversine)."""
    return lat + math.degrees(meters / EARTH_RADIUS_M)


def straight_track(count: int, step_m: float, dt_ms: int = 1000, start_m: float = 0.0,
                   t0: int = T0, **extra) -> list[GeoSample]:
    """Samples walking due north, `step_m` apart and `dt_ms` apart."""
    return [
        GeoSample(lat=lat_after(start_m + i * step_m), lng=START_LNG, ts=t0 + i * dt_ms, **extra)
        for i in range(count)
    ]


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
