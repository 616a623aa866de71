#!/usr/bin/env python3
"""
Replay a recorded GPX track through the live tracking pipeline.

Feeds every track point to the run state machine as if it had just been
reported by the device, advancing the moving clock by the recorded time
between points, then finalizes the run and prints the summary.

Usage examples:
  - Offline (no elevation service, nothing saved):
      runcoach-replay morning.gpx
  - Reconcile elevations and save to the configured database:
      runcoach-replay morning.gpx --elevation --save
  - Disable auto-pause:
      runcoach-replay morning.gpx --no-auto-pause
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

import gpxpy.gpx

from runcoach.core.time_utils import format_clock, format_pace
from runcoach.services.finalizer import SessionFinalizer
from runcoach.services.gpx_export import read_gpx_samples
from runcoach.telemetry.geo import GeoSample
from runcoach.telemetry.machine import RunStateMachine
from runcoach.telemetry.sources import PushLocationSource
from runcoach.telemetry.state import RunSummary


def replay_samples(samples: Sequence[GeoSample], auto_pause: bool = True) -> RunSummary:
    """Run samples through a fresh state machine and return the stop summary."""
    source = PushLocationSource()
    machine = RunStateMachine(source, auto_pause=auto_pause)
    machine.start()

    carry_ms = 0
    prev_ts: int | None = None
    for sample in samples:
        if prev_ts is not None and sample.ts > prev_ts:
            carry_ms += sample.ts - prev_ts
            whole, carry_ms = divmod(carry_ms, 1000)
            machine.tick(int(whole))
        prev_ts = sample.ts if prev_ts is None else max(prev_ts, sample.ts)
        source.push(sample)

    return machine.stop()


def _print_summary(summary: RunSummary, saved_name: str | None, gain: float) -> None:
    speed = summary.distance_m / summary.moving_time_s if summary.moving_time_s else 0.0
    print(f"points={len(summary.path)}")
    print(f"distance={summary.distance_m / 1000:.2f} km")
    print(f"moving_time={format_clock(summary.moving_time_s)}")
    print(f"avg_pace={format_pace(speed)}/km")
    print(f"elev_gain={gain:.1f} m")
    for i, split in enumerate(summary.splits, start=1):
        print(f"  km{i}: {format_clock(split)}")
    if saved_name:
        print(f"saved as: {saved_name}")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="runcoach-replay", description="Replay a GPX track through the tracker")
    p.add_argument("gpx", type=Path, help="GPX file to replay")
    p.add_argument("--no-auto-pause", action="store_true", help="Disable auto-pause/resume")
    p.add_argument("--elevation", action="store_true", help="Reconcile elevations with the elevation service")
    p.add_argument("--save", action="store_true", help="Persist the session to DATABASE_URL")
    args = p.parse_args(argv)

    try:
        samples = read_gpx_samples(args.gpx.read_text(encoding="utf-8"))
    except (OSError, ValueError, gpxpy.gpx.GPXException) as exc:
        print(f"Could not read {args.gpx}: {exc}", file=sys.stderr)
        return 1
    if not samples:
        print(f"No timed track points in {args.gpx}", file=sys.stderr)
        return 1

    summary = replay_samples(samples, auto_pause=not args.no_auto_pause)

    elevation = None
    if args.elevation:
        from runcoach.services.elevation import ElevationClient

        elevation = ElevationClient()

    db = None
    store = None
    if args.save:
        from runcoach.db import Base, SessionLocal, engine
        from runcoach.models import kv_entry, session, session_split, session_track  # noqa: F401
        from runcoach.services.store import SessionStore

        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        store = SessionStore(db)

    try:
        finalized = SessionFinalizer(elevation=elevation, store=store).finalize(summary)
    finally:
        if db is not None:
            db.close()

    gain = finalized.elevation_gain_m if finalized else summary.elevation_gain_m
    _print_summary(summary, finalized.name if (finalized and args.save) else None, gain)
    if finalized is None:
        print("run too short to be saved")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
