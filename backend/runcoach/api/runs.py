from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from runcoach.api.deps import get_coach_client, get_elevation_client, get_session_factory
from runcoach.core.errors import InvalidTransitionError, SensorUnavailableError
from runcoach.db import get_db
from runcoach.schemas.run import RunStart, RunStatus, SampleIn
from runcoach.schemas.session import SessionRead, StopResult
from runcoach.services.announcer import QueuedAnnouncer
from runcoach.services.coach import CoachClient
from runcoach.services.elevation import ElevationClient
from runcoach.services.live import LiveRun
from runcoach.services.store import KeyValueStore, PreferencesStore
from runcoach.telemetry.sources import PushLocationSource
from runcoach.telemetry.state import Phase

router = APIRouter(prefix="/runs", tags=["runs"])


class RunRegistry:
    """The single live run of this process (runs never overlap)."""

    def __init__(self):
        self.live: Optional[LiveRun] = None
        self.source: Optional[PushLocationSource] = None
        self.announcer: Optional[QueuedAnnouncer] = None

    @property
    def active(self) -> bool:
        return self.live is not None and self.live.phase in (Phase.running, Phase.paused)

    async def close(self) -> None:
        if self.live is not None:
            await self.live.aclose()
        self.live = self.source = self.announcer = None


registry = RunRegistry()


def get_registry() -> RunRegistry:
    return registry


def get_location_source() -> PushLocationSource:
    return PushLocationSource()


def _require_live(reg: RunRegistry) -> LiveRun:
    if reg.live is None:
        raise HTTPException(status_code=404, detail="No run in progress")
    return reg.live


def _status(live: LiveRun) -> RunStatus:
    return RunStatus.from_state(live.machine.state, auto_paused=live.machine.auto_paused)


@router.post("/start", response_model=RunStatus)
async def start_run(
    payload: Optional[RunStart] = None,
    reg: RunRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
    source: PushLocationSource = Depends(get_location_source),
    elevation: ElevationClient = Depends(get_elevation_client),
    coach: CoachClient = Depends(get_coach_client),
    session_factory=Depends(get_session_factory),
):
    if reg.active:
        raise HTTPException(status_code=409, detail="A run is already in progress")

    goal = None
    if payload is not None and payload.goal is not None:
        try:
            goal = payload.goal.to_goal()
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    prefs = PreferencesStore(KeyValueStore(db)).load()
    announcer = QueuedAnnouncer()
    live = LiveRun(
        source,
        prefs=prefs,
        announcer=announcer,
        coach=coach,
        elevation=elevation,
        session_factory=session_factory,
    )
    try:
        await live.start(goal)
    except SensorUnavailableError as e:
        await live.aclose()
        raise HTTPException(status_code=503, detail=f"Location unavailable: {e}")

    if reg.live is not None:
        await reg.live.aclose()
    reg.live, reg.source, reg.announcer = live, source, announcer
    return _status(live)


@router.get("/current", response_model=RunStatus)
async def get_current_run(reg: RunRegistry = Depends(get_registry)):
    return _status(_require_live(reg))


@router.post("/current/samples", response_model=RunStatus)
async def push_sample(payload: SampleIn, reg: RunRegistry = Depends(get_registry)):
    """Deliver one device reading; returns the status after it was processed."""
    live = _require_live(reg)
    try:
        sample = payload.to_sample()
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    reg.source.push(sample)
    await live.flush()
    return _status(live)


@router.post("/current/pause", response_model=RunStatus)
async def pause_run(reg: RunRegistry = Depends(get_registry)):
    live = _require_live(reg)
    try:
        await live.pause()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _status(live)


@router.post("/current/resume", response_model=RunStatus)
async def resume_run(reg: RunRegistry = Depends(get_registry)):
    live = _require_live(reg)
    try:
        await live.resume()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _status(live)


@router.post("/current/stop", response_model=StopResult)
async def stop_run(reg: RunRegistry = Depends(get_registry)):
    live = _require_live(reg)
    try:
        session = await live.stop()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if session is None:
        return StopResult(saved=False)
    return StopResult(saved=True, session=SessionRead.from_session(session))


@router.get("/current/cues")
async def drain_cues(reg: RunRegistry = Depends(get_registry)):
    """Cue texts waiting to be spoken by the client, oldest first."""
    _require_live(reg)
    return {"cues": reg.announcer.drain() if reg.announcer else []}
