from runcoach.telemetry.cues import CueScheduler, CueSnapshot, PaceCoach
from runcoach.telemetry.state import Goal, RunState


def test_scheduler_fires_on_time():
    s = CueScheduler(interval_s=20, distance_m=200)
    s.reset(0.0, 0.0)
    assert not s.poll(8.0, 50.0)
    assert not s.poll(16.0, 100.0)
    assert s.poll(20.0, 120.0)
    assert not s.poll(24.0, 140.0)


def test_scheduler_fires_on_distance():
    s = CueScheduler(interval_s=20, distance_m=200)
    s.reset(0.0, 0.0)
    assert s.poll(4.0, 200.0)
    assert not s.poll(8.0, 390.0)
    assert s.poll(12.0, 400.0)


def test_first_poll_without_reset_only_arms():
    s = CueScheduler()
    assert not s.poll(100.0, 5000.0)
    assert not s.poll(104.0, 5010.0)


def test_snapshot_describes_the_run():
    state = RunState(
        distance_m=2350.0,
        moving_time_s=700,
        smoothed_speed=1000 / 300,
        elevation_gain_m=12.4,
        splits=[290, 300],
        goal=Goal(distance_km=5, target_pace_s_per_km=280),
    )
    text = CueSnapshot.from_state(state).describe()
    assert "dist=2.35km" in text
    assert "time=11:40" in text
    assert "pace=05:00" in text
    assert "gain=12m" in text
    assert "lastSplit=05:00" in text
    assert "goal=5km@04:40/km" in text


def test_snapshot_without_movement():
    text = CueSnapshot.from_state(RunState(goal=Goal(duration_s=1800))).describe()
    assert "pace=--:--" in text
    assert "avgPace=--:--" in text
    assert "lastSplit" not in text
    assert "goal=30:00" in text


def test_pace_coach_corrections():
    coach = PaceCoach(280, tolerance_s=6, interval_s=30)
    coach.reset(0.0)
    assert coach.check(10.0, 1000 / 320) is None  # too early
    slow = coach.check(31.0, 1000 / 320)
    assert slow == "05:20 per kilometer. Pick it up a little to reach your target."
    assert coach.check(40.0, 1000 / 240) is None
    fast = coach.check(62.0, 1000 / 240)
    assert fast.endswith("Ease off a little, you are running too fast.")


def test_pace_coach_silent_within_tolerance_or_standing():
    coach = PaceCoach(280, tolerance_s=6, interval_s=30)
    assert coach.check(0.0, 1000 / 284) is None
    assert coach.check(31.0, 0.0) is None
