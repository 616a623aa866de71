"""Elevation lookup client (Open-Elevation compatible).

Request:  GET {url}?locations=lat,lng|lat,lng|...
Response: {"results": [{"latitude": .., "longitude": .., "elevation": ..}, ...]}

The result list is always aligned with the input: a batch that fails or
answers short is padded with None ("unknown").
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

import httpx

from runcoach.core.config import settings
from runcoach.telemetry.geo import GeoSample

logger = logging.getLogger(__name__)


def chunk(items: Sequence, size: int) -> list[Sequence]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def _parse_elevations(payload) -> list[float | None]:
    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, list):
        raise ValueError("missing results list")
    out: list[float | None] = []
    for item in results:
        value = item.get("elevation") if isinstance(item, dict) else None
        if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
            out.append(float(value))
        else:
            out.append(None)
    return out


class ElevationClient:
    def __init__(
        self,
        url: str | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url or settings.elevation_url
        self.batch_size = max(1, batch_size or settings.elevation_batch_size)
        self.timeout = timeout if timeout is not None else settings.elevation_timeout_seconds
        self._transport = transport

    def lookup(self, points: Sequence[GeoSample]) -> list[float | None]:
        """Corrected elevation (meters) for every point, None where unknown."""
        if not points:
            return []
        results: list[float | None] = []
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            for part in chunk(points, self.batch_size):
                results.extend(self._lookup_batch(client, part))
        return results[: len(points)]

    def _lookup_batch(self, client: httpx.Client, part: Sequence[GeoSample]) -> list[float | None]:
        query = "|".join(f"{p.lat},{p.lng}" for p in part)
        try:
            r = client.get(self.url, params={"locations": query})
            if r.status_code != 200:
                logger.warning("Elevation batch of %d failed: HTTP %s", len(part), r.status_code)
                return [None] * len(part)
            values = _parse_elevations(r.json())
        except httpx.HTTPError as e:
            logger.warning("Elevation batch of %d unreachable: %s", len(part), e)
            return [None] * len(part)
        except ValueError as e:
            logger.warning("Elevation batch of %d malformed: %s", len(part), e)
            return [None] * len(part)

        if len(values) < len(part):
            values.extend([None] * (len(part) - len(values)))
        return values[: len(part)]
