"""Asynchronous driver for one live run.

Everything that touches the RunState goes through a single asyncio queue
and is handled by one consumer task, in arrival order: location callbacks,
clock ticks, cue polls, user commands, and the completions of background
network calls. Network calls never mutate state directly; they post a
message back onto the queue when they finish.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine, Optional

from sqlalchemy.orm import Session

from runcoach.core.config import settings
from runcoach.core.constants import MAX_CLOCK_CATCHUP_S
from runcoach.core.errors import (
    CoachConfigError,
    CoachServiceError,
    InvalidTransitionError,
    RunCoachError,
)
from runcoach.schemas.preferences import Preferences
from runcoach.services.announcer import Announcer, SilentAnnouncer
from runcoach.services.coach import CoachClient
from runcoach.services.elevation import ElevationClient
from runcoach.services.finalizer import SessionFinalizer
from runcoach.services.store import SessionStore
from runcoach.telemetry.cues import CueScheduler, CueSnapshot, PaceCoach
from runcoach.telemetry.geo import GeoSample
from runcoach.telemetry.machine import RunStateMachine
from runcoach.telemetry.sources import LocationSource, SampleCallback
from runcoach.telemetry.state import FinalizedSession, Goal, Phase, RunSummary

logger = logging.getLogger(__name__)


# --------- Messages --------- #

@dataclass
class SampleArrived:
    callback: SampleCallback
    sample: GeoSample


@dataclass
class Tick:
    seconds: int


@dataclass
class CuePoll:
    now: float


@dataclass
class CueText:
    text: str


@dataclass
class Command:
    name: str
    reply: asyncio.Future
    goal: Optional[Goal] = None


@dataclass
class Barrier:
    reply: asyncio.Future


@dataclass
class ElevationsReady:
    summary: RunSummary
    elevations: Optional[list] = field(default=None)
    reply: Optional[asyncio.Future] = None


_CLOSE = object()


class QueuedLocationSource:
    """Routes a source's callbacks through the run's event queue."""

    def __init__(self, inner: LocationSource, post: Callable[[Any], None]):
        self.inner = inner
        self.post = post

    def start(self, callback: SampleCallback) -> None:
        self.inner.start(lambda sample: self.post(SampleArrived(callback, sample)))

    def stop(self) -> None:
        self.inner.stop()


class LiveRun:
    def __init__(
        self,
        source: LocationSource,
        prefs: Preferences | None = None,
        announcer: Announcer | None = None,
        coach: CoachClient | None = None,
        elevation: ElevationClient | None = None,
        session_factory: Callable[[], Session] | None = None,
        clock: Callable[[], float] = time.monotonic,
        tick_seconds: float = 1.0,
        cue_poll_seconds: float | None = None,
    ):
        prefs = prefs or Preferences()
        self.prefs = prefs
        self.announcer = announcer if prefs.voice_cues and announcer is not None else SilentAnnouncer()
        # Spoken replies are the only use of live coaching text
        self.coach = coach if prefs.voice_cues else None
        self.elevation = elevation
        self.session_factory = session_factory
        self.clock = clock
        self.tick_seconds = tick_seconds
        self.cue_poll_seconds = cue_poll_seconds if cue_poll_seconds is not None else settings.cue_poll_seconds

        self.queue: asyncio.Queue = asyncio.Queue()
        self.machine = RunStateMachine(
            QueuedLocationSource(source, self.post),
            announcer=self.announcer,
            auto_pause=prefs.auto_pause,
        )
        self.scheduler = CueScheduler(settings.cue_interval_seconds, settings.cue_distance_m)
        # Built on start, once the goal is known
        self.pace_coach: PaceCoach | None = None

        self.session: FinalizedSession | None = None
        self.finished = asyncio.Event()
        self._consumer: asyncio.Task | None = None
        self._timers: list[asyncio.Task] = []
        self._tasks: set[asyncio.Task] = set()

    # --------- Public API (awaited by callers on the loop) --------- #

    @property
    def phase(self) -> Phase:
        return self.machine.phase

    def post(self, message: Any) -> None:
        self.queue.put_nowait(message)

    async def start(self, goal: Goal | None = None) -> None:
        if self._consumer is None:
            self._consumer = asyncio.create_task(self._consume())
        await self._call("start", goal=goal)
        self._timers = [
            asyncio.create_task(self._run_clock()),
            asyncio.create_task(self._run_cue_timer()),
        ]

    async def pause(self) -> None:
        await self._call("pause")

    async def resume(self) -> None:
        await self._call("resume")

    async def stop(self) -> FinalizedSession | None:
        """Stop the run and wait until the session is finalized (or discarded)."""
        return await self._call("stop")

    @property
    def closed(self) -> bool:
        return self._consumer is not None and self._consumer.done()

    async def flush(self) -> None:
        """Wait until every message posted so far has been handled."""
        if self._consumer is None or self.closed:
            return
        fut = asyncio.get_running_loop().create_future()
        self.post(Barrier(fut))
        await fut

    async def aclose(self) -> None:
        for task in [*self._timers, *self._tasks]:
            task.cancel()
        if self._consumer is not None and not self._consumer.done():
            self.post(_CLOSE)
            await self._consumer
        self.finished.set()

    async def _call(self, name: str, goal: Goal | None = None):
        if self.closed:
            raise InvalidTransitionError(f"cannot {name} a run that is {self.phase.value}")
        fut = asyncio.get_running_loop().create_future()
        self.post(Command(name, fut, goal))
        return await fut

    # --------- Consumer --------- #

    async def _consume(self) -> None:
        while True:
            message = await self.queue.get()
            if message is _CLOSE:
                break
            try:
                self._handle(message)
            except Exception as e:
                logger.exception("Failed to handle %r", message)
                reply = getattr(message, "reply", None)
                if reply is not None and not reply.done():
                    reply.set_exception(e)
                if isinstance(message, ElevationsReady):
                    self._spawn(self._drain())
        self._reject_pending()
        self.finished.set()

    def _reject_pending(self) -> None:
        """Resolve callers whose messages arrived after the close."""
        while not self.queue.empty():
            message = self.queue.get_nowait()
            if isinstance(message, Barrier) and not message.reply.done():
                message.reply.set_result(None)
            elif isinstance(message, Command) and not message.reply.done():
                message.reply.set_exception(
                    InvalidTransitionError(f"cannot {message.name} a run that is {self.phase.value}")
                )

    def _handle(self, message: Any) -> None:
        if isinstance(message, SampleArrived):
            message.callback(message.sample)
        elif isinstance(message, Tick):
            self.machine.tick(message.seconds)
        elif isinstance(message, CuePoll):
            self._poll_cues(message.now)
        elif isinstance(message, CueText):
            self.announcer.say(message.text)
        elif isinstance(message, Command):
            self._run_command(message)
        elif isinstance(message, Barrier):
            if not message.reply.done():
                message.reply.set_result(None)
        elif isinstance(message, ElevationsReady):
            self._complete(message)
        else:
            raise TypeError(f"unexpected message {message!r}")

    def _run_command(self, command: Command) -> None:
        try:
            if command.name == "start":
                self.machine.start(command.goal)
                now = self.clock()
                self.scheduler.reset(now, 0.0)
                if self.prefs.voice_cues:
                    self.pace_coach = self._make_pace_coach(command.goal)
                    self.pace_coach.reset(now)
                command.reply.set_result(None)
            elif command.name == "pause":
                self.machine.pause()
                command.reply.set_result(None)
            elif command.name == "resume":
                self.machine.resume()
                command.reply.set_result(None)
            elif command.name == "stop":
                summary = self.machine.stop()
                for timer in self._timers:
                    timer.cancel()
                # Resolved once the elevation lookup has been merged
                self._spawn(self._lookup_elevations(summary, command.reply))
            else:
                raise ValueError(f"unknown command {command.name}")
        except RunCoachError as e:
            command.reply.set_exception(e)

    def _make_pace_coach(self, goal: Goal | None) -> PaceCoach:
        target = self.prefs.target_pace_s_per_km
        if goal is not None and goal.target_pace_s_per_km:
            target = goal.target_pace_s_per_km
        return PaceCoach(
            target,
            tolerance_s=settings.pace_tolerance_seconds,
            interval_s=settings.pace_check_seconds,
        )

    # --------- Cues --------- #

    def _poll_cues(self, now: float) -> None:
        if self.machine.phase != Phase.running:
            return
        state = self.machine.state
        if self.coach is not None and self.scheduler.poll(now, state.distance_m):
            self._spawn(self._request_cue(CueSnapshot.from_state(state)))
        if self.pace_coach is not None:
            text = self.pace_coach.check(now, state.smoothed_speed)
            if text:
                self.announcer.say(text)

    async def _request_cue(self, snapshot: CueSnapshot) -> None:
        try:
            text = await asyncio.to_thread(self.coach.cue, snapshot)
        except CoachConfigError as e:
            logger.warning("Live cue skipped: %s", e)
            return
        except CoachServiceError as e:
            logger.debug("Live cue skipped: %s", e)
            return
        self.post(CueText(text))

    # --------- Finalization --------- #

    async def _lookup_elevations(self, summary: RunSummary, reply: asyncio.Future) -> None:
        try:
            elevations = await asyncio.to_thread(SessionFinalizer(self.elevation).lookup, summary)
        except Exception:
            # Finalization must not depend on the elevation service
            logger.exception("Elevation lookup crashed; keeping incremental gain")
            elevations = None
        self.post(ElevationsReady(summary, elevations, reply))

    def _complete(self, message: ElevationsReady) -> None:
        db = None
        try:
            if self.session_factory is not None:
                db = self.session_factory()
            store = SessionStore(db) if db is not None else None
            self.session = SessionFinalizer(store=store).complete(message.summary, message.elevations)
        except Exception as e:
            # The caller of stop() gets the error; the consumer still shuts down
            logger.exception("Could not finalize the finished run")
            if message.reply is not None and not message.reply.done():
                message.reply.set_exception(e)
            self._spawn(self._drain())
            return
        finally:
            if db is not None:
                db.close()
        self.announcer.say("Run saved. Great work!" if self.session else "Run discarded.")
        if message.reply is not None and not message.reply.done():
            message.reply.set_result(self.session)
        self._spawn(self._drain())

    async def _drain(self) -> None:
        """Let in-flight cue requests land, then shut the consumer down."""
        current = asyncio.current_task()
        pending = [t for t in self._tasks if t is not current]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self.post(_CLOSE)

    # --------- Timers --------- #

    async def _run_clock(self) -> None:
        last = self.clock()
        while True:
            await asyncio.sleep(self.tick_seconds)
            now = self.clock()
            whole = int(now - last)
            if whole <= 0:
                continue
            last += whole
            self.post(Tick(min(whole, MAX_CLOCK_CATCHUP_S)))

    async def _run_cue_timer(self) -> None:
        while True:
            await asyncio.sleep(self.cue_poll_seconds)
            self.post(CuePoll(self.clock()))

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
