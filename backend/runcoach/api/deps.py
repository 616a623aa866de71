"""Injectable collaborators of the routers (overridden in tests)."""

from runcoach.db import SessionLocal
from runcoach.services.coach import CoachClient
from runcoach.services.elevation import ElevationClient


def get_elevation_client() -> ElevationClient:
    return ElevationClient()


def get_coach_client() -> CoachClient:
    return CoachClient()


def get_session_factory():
    return SessionLocal
