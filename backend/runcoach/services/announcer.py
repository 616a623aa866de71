"""Speech output port.

The tracking core only emits cue texts; whether and how they are voiced is
up to the adapter. The server keeps them queued for the client to speak.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Protocol

logger = logging.getLogger(__name__)


class Announcer(Protocol):
    def say(self, text: str) -> None:
        ...


class SilentAnnouncer:
    """Used when voice cues are turned off."""

    def say(self, text: str) -> None:
        logger.debug("Cue suppressed: %s", text)


class QueuedAnnouncer:
    """Collects cue texts until a client drains them."""

    def __init__(self, maxlen: int = 50):
        self._pending: deque[str] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def say(self, text: str) -> None:
        logger.info("Cue: %s", text)
        with self._lock:
            self._pending.append(text)

    def drain(self) -> list[str]:
        with self._lock:
            out = list(self._pending)
            self._pending.clear()
        return out
