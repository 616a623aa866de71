"""Run session state machine.

    idle --start--> running --pause / auto-pause--> paused
    paused --resume / auto-resume--> running
    running|paused --stop--> stopped

Every sample delivered while running goes through the same synchronous
cascade: order check -> filter -> fuse -> accumulate -> splits -> auto-pause.
"""

from __future__ import annotations

import logging

from runcoach.core.constants import AUTO_PAUSE_SPEED_MPS, AUTO_RESUME_SPEED_MPS
from runcoach.core.errors import InvalidTransitionError
from runcoach.core.time_utils import format_clock
from runcoach.services.announcer import Announcer, SilentAnnouncer
from runcoach.telemetry.accumulator import ascent_m
from runcoach.telemetry.filter import accept
from runcoach.telemetry.fusion import update_speed
from runcoach.telemetry.geo import GeoSample, TrackPoint, distance_m
from runcoach.telemetry.sources import LocationSource
from runcoach.telemetry.splits import detect_splits
from runcoach.telemetry.state import Goal, Phase, RunState, RunSummary

logger = logging.getLogger(__name__)


class RunStateMachine:
    """Owns the RunState of exactly one run.

    A new run needs a new machine: `stopped` is terminal.
    """

    def __init__(
        self,
        source: LocationSource,
        announcer: Announcer | None = None,
        auto_pause: bool = True,
    ):
        self.source = source
        self.announcer = announcer or SilentAnnouncer()
        self.auto_pause = auto_pause
        self.state = RunState()

        # Bumped on every teardown so callbacks of a dead subscription are ignored.
        self._generation = 0
        self._subscribed = False
        self._auto_paused = False
        # Latest sample seen while auto-paused; speed is probed against it.
        self._probe: GeoSample | None = None
        self._segment = 0
        # The next accepted point starts a segment and adds no distance.
        self._segment_open = True

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def auto_paused(self) -> bool:
        return self._auto_paused

    # --------- Commands --------- #

    def start(self, goal: Goal | None = None) -> None:
        if self.phase != Phase.idle:
            raise InvalidTransitionError(f"cannot start a run that is {self.phase.value}")
        self.state = RunState(goal=goal)
        self._segment = 0
        self._segment_open = True
        # Raises SensorUnavailableError and leaves the machine idle.
        self._subscribe()
        self.state.phase = Phase.running
        logger.info("Run started (goal=%s)", goal)
        self.announcer.say("Starting run. Have a great workout!")

    def pause(self, auto: bool = False) -> None:
        if self.phase == Phase.running:
            self.state.phase = Phase.paused
            if auto:
                self._auto_paused = True
                self._probe = None
            else:
                self._unsubscribe()
            logger.info("Run paused (auto=%s) at %.1f m", auto, self.state.distance_m)
            self.announcer.say("Run paused.")
            return
        if self.phase == Phase.paused and self._auto_paused and not auto:
            # An explicit pause on top of an auto-pause stops acquisition too.
            self._auto_paused = False
            self._probe = None
            self._unsubscribe()
            return
        raise InvalidTransitionError(f"cannot pause a run that is {self.phase.value}")

    def resume(self, auto: bool = False) -> None:
        if self.phase != Phase.paused:
            raise InvalidTransitionError(f"cannot resume a run that is {self.phase.value}")
        if not auto:
            self.state.smoothed_speed = 0.0
        if not self._subscribed:
            self._subscribe()
        self.state.phase = Phase.running
        self._auto_paused = False
        self._probe = None
        self._segment += 1
        self._segment_open = True
        logger.info("Run resumed (auto=%s)", auto)
        self.announcer.say("Back to the run.")

    def stop(self) -> RunSummary:
        if self.phase not in (Phase.running, Phase.paused):
            raise InvalidTransitionError(f"cannot stop a run that is {self.phase.value}")
        self._unsubscribe()
        self._auto_paused = False
        self._probe = None
        self.state.phase = Phase.stopped
        logger.info(
            "Run stopped: %.1f m in %d s, %d points",
            self.state.distance_m,
            self.state.moving_time_s,
            len(self.state.path),
        )
        return RunSummary.from_state(self.state)

    def tick(self, seconds: int = 1) -> None:
        """Advance the moving clock. Only counts while running."""
        if self.phase == Phase.running and seconds > 0:
            self.state.moving_time_s += seconds

    # --------- Sample cascade --------- #

    def process_sample(self, sample: GeoSample) -> bool:
        """Run one sample through the pipeline. Returns True if it joined the path."""
        if self.phase == Phase.paused and self._auto_paused:
            return self._probe_sample(sample)
        if self.phase != Phase.running:
            logger.debug("Ignored sample at ts=%s while %s", sample.ts, self.phase.value)
            return False

        last = self.state.last_point
        if last is not None and sample.ts <= last.ts:
            logger.debug("Dropped out-of-order sample ts=%s (last=%s)", sample.ts, last.ts)
            return False
        if not accept(sample, last):
            return False
        self._append(sample, last)
        return True

    def _append(self, sample: GeoSample, last: TrackPoint | None) -> None:
        state = self.state
        point = TrackPoint.from_sample(sample, self._segment)
        moved = last is not None and not self._segment_open
        if moved:
            state.smoothed_speed = update_speed(last, point, state.smoothed_speed)
            state.distance_m += distance_m(last, point)
            state.elevation_gain_m += ascent_m(last, point)
            first_km = len(state.splits) + 1
            new_splits = detect_splits(state.splits, state.distance_m, state.moving_time_s)
            for km, split_s in enumerate(new_splits, start=first_km):
                logger.info("Split km %d: %d s", km, split_s)
                self.announcer.say(f"Kilometer {km}. Split {format_clock(split_s)}.")
        state.path.append(point)
        self._segment_open = False

        if moved and self.auto_pause and state.smoothed_speed < AUTO_PAUSE_SPEED_MPS:
            self.pause(auto=True)

    def _probe_sample(self, sample: GeoSample) -> bool:
        state = self.state
        anchor: GeoSample | None = self._probe or state.last_point
        if anchor is not None and sample.ts <= anchor.ts:
            return False
        if not accept(sample, anchor):
            return False
        if anchor is not None:
            state.smoothed_speed = update_speed(anchor, sample, state.smoothed_speed)
        self._probe = sample
        if self.auto_pause and state.smoothed_speed >= AUTO_RESUME_SPEED_MPS:
            self.resume(auto=True)
            self._append(sample, state.last_point)
            return True
        return False

    # --------- Acquisition --------- #

    def _subscribe(self) -> None:
        self._generation += 1
        generation = self._generation

        def deliver(sample: GeoSample) -> None:
            if generation != self._generation:
                logger.debug("Dropped sample from a torn-down subscription")
                return
            self.process_sample(sample)

        self.source.start(deliver)
        self._subscribed = True

    def _unsubscribe(self) -> None:
        if self._subscribed:
            self.source.stop()
            self._subscribed = False
        self._generation += 1
