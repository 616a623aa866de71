import pytest
from conftest import START_LNG, T0, lat_after, straight_track

from runcoach.core.errors import InvalidTransitionError, SensorUnavailableError
from runcoach.services.announcer import QueuedAnnouncer
from runcoach.telemetry.geo import GeoSample
from runcoach.telemetry.machine import RunStateMachine
from runcoach.telemetry.sources import PushLocationSource
from runcoach.telemetry.state import Goal, Phase


class RecordingSource:
    """Keeps every callback it was ever handed."""

    def __init__(self):
        self.callbacks = []
        self.active = None

    def start(self, callback):
        self.callbacks.append(callback)
        self.active = callback

    def stop(self):
        self.active = None


class Walker:
    """Feeds samples due north, ticking the clock by the elapsed whole seconds."""

    def __init__(self, machine, source):
        self.machine = machine
        self.source = source
        self.meters = 0.0
        self.ts = T0
        self.started = False

    def step(self, meters, dt_s, **extra):
        if self.started:
            self.meters += meters
            self.ts += int(dt_s * 1000)
            self.machine.tick(int(dt_s))
        self.started = True
        return self.source.push(
            GeoSample(lat=lat_after(self.meters), lng=START_LNG, ts=self.ts, **extra)
        )


@pytest.fixture
def source():
    return PushLocationSource()


@pytest.fixture
def announcer():
    return QueuedAnnouncer()


@pytest.fixture
def machine(source, announcer):
    m = RunStateMachine(source, announcer=announcer)
    m.start()
    return m


def test_start_resets_and_subscribes(source, announcer):
    m = RunStateMachine(source, announcer=announcer)
    assert m.phase == Phase.idle
    m.start(Goal(distance_km=5, target_pace_s_per_km=280))
    assert m.phase == Phase.running
    assert source.subscribed
    assert m.state.goal.distance_km == 5
    assert announcer.drain() == ["Starting run. Have a great workout!"]


def test_unavailable_sensor_leaves_machine_idle():
    m = RunStateMachine(PushLocationSource(available=False))
    with pytest.raises(SensorUnavailableError):
        m.start()
    assert m.phase == Phase.idle


def test_invalid_transitions_raise(source):
    m = RunStateMachine(source)
    with pytest.raises(InvalidTransitionError):
        m.pause()
    with pytest.raises(InvalidTransitionError):
        m.resume()
    with pytest.raises(InvalidTransitionError):
        m.stop()
    m.start()
    with pytest.raises(InvalidTransitionError):
        m.start()
    with pytest.raises(InvalidTransitionError):
        m.resume()
    m.stop()
    with pytest.raises(InvalidTransitionError):
        m.stop()


def test_inaccurate_third_point_is_rejected(source):
    m = RunStateMachine(source, auto_pause=False)
    m.start()
    lat50 = lat_after(50, lat=0.0)
    source.push(GeoSample(lat=0.0, lng=0.0, ts=0))
    source.push(GeoSample(lat=lat50, lng=0.0, ts=10_000))
    source.push(GeoSample(lat=lat_after(50, lat=lat50), lng=0.0, ts=20_000, accuracy=40))

    assert m.state.distance_m == pytest.approx(50.0, abs=0.01)
    assert len(m.state.path) == 2
    assert m.state.last_point.lat == lat50


def test_steady_run_distance_splits_and_announcements(machine, source, announcer):
    walker = Walker(machine, source)
    for _ in range(400):
        walker.step(3.0, 1)

    state = machine.state
    assert state.distance_m == pytest.approx(399 * 3.0, rel=1e-6)
    assert state.moving_time_s == 399
    # km 1 is completed by the 334th step, 334 s into the run
    assert state.splits == [334]
    assert state.smoothed_speed == pytest.approx(3.0, rel=1e-3)
    assert "Kilometer 1. Split 05:34." in announcer.drain()


def test_first_split_equals_moving_time(machine, source):
    walker = Walker(machine, source)
    # 167 steps of 6 m cross the first kilometer, nothing before it
    for _ in range(168):
        walker.step(6.0, 2)
    assert machine.state.moving_time_s == 334
    assert machine.state.splits == [machine.state.moving_time_s]


def test_out_of_order_and_duplicate_samples_are_dropped(machine, source):
    for s in straight_track(3, 10.0):
        source.push(s)
    distance = machine.state.distance_m
    assert not machine.process_sample(GeoSample(lat=lat_after(500), lng=START_LNG, ts=T0 + 1000))
    assert not machine.process_sample(GeoSample(lat=lat_after(500), lng=START_LNG, ts=T0 + 2000))
    assert machine.state.distance_m == distance
    assert len(machine.state.path) == 3


def test_slowing_down_auto_pauses(machine, source, announcer):
    walker = Walker(machine, source)
    for _ in range(10):
        walker.step(3.0, 1)

    slow_steps = 0
    while machine.phase == Phase.running and slow_steps < 20:
        walker.step(2.5, 10)
        slow_steps += 1

    assert slow_steps == 6
    assert machine.phase == Phase.paused
    assert machine.auto_paused
    assert machine.state.smoothed_speed < 0.5
    # acquisition stays up so speed can be probed
    assert source.subscribed
    assert "Run paused." in announcer.drain()

    moving = machine.state.moving_time_s
    machine.tick(10)
    assert machine.state.moving_time_s == moving


def test_auto_resume_needs_the_higher_threshold(machine, source):
    walker = Walker(machine, source)
    for _ in range(10):
        walker.step(3.0, 1)
    while machine.phase == Phase.running:
        walker.step(2.5, 10)

    points = len(machine.state.path)
    distance = machine.state.distance_m

    # 0.6 m/s is above the pause threshold but below the resume one
    for _ in range(5):
        walker.step(3.0, 5)
    assert machine.phase == Phase.paused
    assert len(machine.state.path) == points

    assert walker.step(3.0, 1)
    assert machine.phase == Phase.running
    assert not machine.auto_paused
    assert len(machine.state.path) == points + 1
    assert machine.state.last_point.segment == 1
    # the resuming point opens a new segment and adds no distance
    assert machine.state.distance_m == distance

    walker.step(3.0, 1)
    assert machine.state.distance_m == pytest.approx(distance + 3.0, rel=1e-6)


def test_auto_pause_can_be_disabled(source):
    m = RunStateMachine(source, auto_pause=False)
    m.start()
    walker = Walker(m, source)
    for _ in range(5):
        walker.step(3.0, 1)
    for _ in range(20):
        walker.step(2.5, 10)
    assert m.phase == Phase.running


def test_explicit_pause_stops_acquisition(machine, source):
    walker = Walker(machine, source)
    for _ in range(5):
        walker.step(3.0, 1)
    distance = machine.state.distance_m

    machine.pause()
    assert machine.phase == Phase.paused
    assert not machine.auto_paused
    assert not source.subscribed
    assert not walker.step(3.0, 1)

    machine.resume()
    assert source.subscribed
    assert machine.state.smoothed_speed == 0.0
    walker.step(300.0, 60)  # far away: new segment, no distance
    assert machine.state.distance_m == distance
    assert machine.state.last_point.segment == 1


def test_explicit_pause_on_top_of_auto_pause(machine, source):
    walker = Walker(machine, source)
    for _ in range(10):
        walker.step(3.0, 1)
    while machine.phase == Phase.running:
        walker.step(2.5, 10)

    machine.pause()
    assert machine.phase == Phase.paused
    assert not machine.auto_paused
    assert not source.subscribed


def test_callbacks_of_a_torn_down_subscription_are_ignored():
    source = RecordingSource()
    m = RunStateMachine(source)
    m.start()
    m.pause()
    m.resume()
    stale, live = source.callbacks

    stale(GeoSample(lat=lat_after(0), lng=START_LNG, ts=T0))
    assert m.state.path == []
    live(GeoSample(lat=lat_after(0), lng=START_LNG, ts=T0))
    assert len(m.state.path) == 1


def test_stop_returns_summary_and_is_terminal(machine, source):
    for s in straight_track(6, 10.0, dt_ms=3000):
        source.push(s)
        machine.tick(3)
    summary = machine.stop()

    assert machine.phase == Phase.stopped
    assert not source.subscribed
    assert len(summary.path) == 6
    assert summary.distance_m == pytest.approx(50.0, rel=1e-6)
    assert summary.moving_time_s == 18

    machine.tick(5)
    assert machine.state.moving_time_s == 18
    assert not machine.process_sample(GeoSample(lat=lat_after(100), lng=START_LNG, ts=T0 + 60_000))


def test_split_count_tracks_distance_after_every_sample(machine, source):
    from runcoach.telemetry.accumulator import path_distance_m

    walker = Walker(machine, source)
    for _ in range(700):
        walker.step(4.5, 1)
        state = machine.state
        assert len(state.splits) == int(state.distance_m // 1000)
    assert len(machine.state.splits) == 3
    assert path_distance_m(machine.state.path) == pytest.approx(machine.state.distance_m)
