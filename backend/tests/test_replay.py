import pytest
from conftest import T0, straight_track

from runcoach.replay import main, replay_samples
from runcoach.services.gpx_export import read_gpx_samples, to_gpx
from runcoach.telemetry.geo import TrackPoint
from runcoach.telemetry.state import FinalizedSession


def _write_gpx(path, samples):
    session = FinalizedSession(
        id="x",
        name="Morning run",
        distance_m=0.0,
        moving_time_s=0,
        avg_pace_s_per_km=0.0,
        path=tuple(TrackPoint.from_sample(s) for s in samples),
        splits=(),
        elevation_gain_m=0.0,
        created_at_ms=T0,
    )
    path.write_text(to_gpx(session), encoding="utf-8")


def test_replay_of_a_steady_run():
    summary = replay_samples(straight_track(400, 3.0))
    assert summary.distance_m == pytest.approx(1197.0, rel=1e-6)
    assert summary.moving_time_s == 399
    assert summary.splits == (334,)


def test_replay_carries_sub_second_gaps():
    summary = replay_samples(straight_track(11, 2.5, dt_ms=500), auto_pause=False)
    assert summary.moving_time_s == 5


def test_cli_prints_summary(tmp_path, capsys):
    gpx = tmp_path / "steady.gpx"
    _write_gpx(gpx, straight_track(400, 3.0))
    assert len(read_gpx_samples(gpx.read_text(encoding="utf-8"))) == 400

    assert main([str(gpx)]) == 0
    out = capsys.readouterr().out
    assert "points=400" in out
    assert "distance=1.20 km" in out
    assert "km1: 05:34" in out
    assert "saved as" not in out


def test_cli_reports_short_runs(tmp_path, capsys):
    gpx = tmp_path / "short.gpx"
    _write_gpx(gpx, straight_track(3, 5.0))
    assert main([str(gpx)]) == 0
    assert "run too short to be saved" in capsys.readouterr().out


def test_cli_rejects_missing_or_empty_files(tmp_path, capsys):
    assert main([str(tmp_path / "missing.gpx")]) == 1
    empty = tmp_path / "empty.gpx"
    empty.write_text('<gpx version="1.1" creator="device" xmlns="http://www.topografix.com/GPX/1/1"><trk/></gpx>', encoding="utf-8")
    assert main([str(empty)]) == 1
    assert "No timed track points" in capsys.readouterr().err


def test_cli_rejects_truncated_files(tmp_path, capsys):
    gpx = tmp_path / "bad.gpx"
    gpx.write_text("<gpx><trk>", encoding="utf-8")
    assert main([str(gpx)]) == 1
    assert "Could not read" in capsys.readouterr().err


def test_cli_rejects_points_without_coordinates(tmp_path, capsys):
    gpx = tmp_path / "nolat.gpx"
    gpx.write_text(
        '<gpx version="1.1" creator="device" xmlns="http://www.topografix.com/GPX/1/1">'
        "<trk><trkseg><trkpt><time>2023-11-14T22:13:20Z</time></trkpt></trkseg></trk></gpx>",
        encoding="utf-8",
    )
    assert main([str(gpx)]) == 1
    assert "Could not read" in capsys.readouterr().err
