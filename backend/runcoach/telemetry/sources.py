"""Location acquisition port.

The tracking core only needs to start a subscription with a callback and
stop it again. The platform service behind it is out of scope; the HTTP
API feeds samples through `PushLocationSource`.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from runcoach.core.errors import SensorUnavailableError
from runcoach.telemetry.geo import GeoSample

logger = logging.getLogger(__name__)

SampleCallback = Callable[[GeoSample], None]


class LocationSource(Protocol):
    def start(self, callback: SampleCallback) -> None:
        """Begin delivering samples to `callback`. Raises SensorUnavailableError."""
        ...

    def stop(self) -> None:
        """Stop delivering samples. Must be idempotent."""
        ...


class PushLocationSource:
    """A source fed by an external producer calling `push`.

    Samples pushed while nobody is subscribed are dropped.
    """

    def __init__(self, available: bool = True):
        self.available = available
        self._callback: SampleCallback | None = None

    @property
    def subscribed(self) -> bool:
        return self._callback is not None

    def start(self, callback: SampleCallback) -> None:
        if not self.available:
            raise SensorUnavailableError("location permission denied or no provider")
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def push(self, sample: GeoSample) -> bool:
        """Deliver one sample. Returns False when acquisition is stopped."""
        callback = self._callback
        if callback is None:
            logger.debug("Dropped sample at ts=%s: acquisition stopped", sample.ts)
            return False
        callback(sample)
        return True
