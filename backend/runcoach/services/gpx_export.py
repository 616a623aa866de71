"""GPX 1.1 export of a finalized session (and the matching reader)."""

from __future__ import annotations

import re
from datetime import timezone
from itertools import groupby

import gpxpy
import gpxpy.gpx

from runcoach.core.time_utils import ms_to_datetime
from runcoach.telemetry.geo import GeoSample
from runcoach.telemetry.state import FinalizedSession

CREATOR = "runcoach"


def to_gpx(session: FinalizedSession) -> str:
    """Render a session as a GPX 1.1 document: one trkseg per path segment."""
    gpx = gpxpy.gpx.GPX()
    gpx.creator = CREATOR
    track = gpxpy.gpx.GPXTrack(name=session.name or "Run")
    gpx.tracks.append(track)

    for _, points in groupby(session.path, key=lambda p: p.segment):
        segment = gpxpy.gpx.GPXTrackSegment()
        for p in points:
            segment.points.append(
                gpxpy.gpx.GPXTrackPoint(
                    latitude=p.lat,
                    longitude=p.lng,
                    elevation=round(p.altitude, 1) if p.altitude is not None else None,
                    time=ms_to_datetime(p.ts),
                )
            )
        track.segments.append(segment)

    return gpx.to_xml(version="1.1")


def gpx_filename(session: FinalizedSession) -> str:
    stem = re.sub(r"\s+", "_", session.name.strip()) or "run"
    return f"{stem}.gpx"


def _time_ms(time) -> int:
    if time.tzinfo is None:
        time = time.replace(tzinfo=timezone.utc)
    return round(time.timestamp() * 1000)


def read_gpx_samples(xml_text: str) -> list[GeoSample]:
    """Track points of a GPX document as samples, in document order.

    Points without a time are skipped. Raises gpxpy.gpx.GPXException for
    documents gpxpy cannot parse.
    """
    gpx = gpxpy.parse(xml_text)

    samples: list[GeoSample] = []
    for track in gpx.tracks:
        for segment in track.segments:
            for p in segment.points:
                if p.time is None:
                    continue
                samples.append(
                    GeoSample.from_reading(
                        lat=p.latitude,
                        lng=p.longitude,
                        ts=_time_ms(p.time),
                        altitude=p.elevation,
                    )
                )
    return samples
