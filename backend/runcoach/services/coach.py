"""Coaching text client (OpenAI-compatible chat completions)."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from runcoach.core.config import settings
from runcoach.core.errors import CoachConfigError, CoachServiceError
from runcoach.core.time_utils import format_clock, format_pace
from runcoach.telemetry.cues import CueSnapshot

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an elite running coach. Answer in a practical, objective way. "
    "Use the data: current/average pace, splits, distance, elevation gain. "
    "Focus on tactical actions for the next kilometer."
)

CUE_PROMPT = (
    "Give me one short spoken cue (max 20 words) for right now, in the middle of the run."
)


class CoachClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.coach_api_key
        self.base_url = (base_url or settings.coach_api_url).rstrip("/")
        self.model = model or settings.coach_model
        self.temperature = temperature if temperature is not None else settings.coach_temperature
        self.timeout = timeout if timeout is not None else settings.coach_timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def complete(self, messages: Sequence[dict]) -> str:
        """Send a conversation and return the generated reply text."""
        if not self.api_key:
            raise CoachConfigError("coaching service credential (COACH_API_KEY) is not set")

        payload = {
            "model": self.model,
            "messages": [{"role": "system", "content": SYSTEM_PROMPT}, *messages],
            "temperature": self.temperature,
        }
        hdrs = {"Authorization": f"Bearer {self.api_key}"}
        try:
            with httpx.Client(timeout=self.timeout, headers=hdrs, transport=self._transport) as client:
                r = client.post(f"{self.base_url}/chat/completions", json=payload)
        except httpx.HTTPError as e:
            raise CoachServiceError(f"coaching service unreachable: {e}") from e
        if r.status_code != 200:
            raise CoachServiceError(f"coaching service failed: HTTP {r.status_code}")

        try:
            text = r.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CoachServiceError("coaching service returned a malformed response") from e
        if not isinstance(text, str) or not text.strip():
            raise CoachServiceError("coaching service returned an empty reply")
        return text.strip()

    def cue(self, snapshot: CueSnapshot) -> str:
        """Short live cue for a snapshot of the run in progress."""
        return self.complete([{"role": "user", "content": f"{CUE_PROMPT}\n\nContext: {snapshot.describe()}"}])

    def chat(self, message: str, history: Sequence[dict], context: str) -> str:
        """Free-text question with the prior conversation and a run context."""
        messages = [{"role": m["role"], "content": m["content"]} for m in history]
        messages.append({"role": "user", "content": f"{message}\n\nContext: {context}"})
        return self.complete(messages)


def describe_session(session) -> str:
    """Context line for a finished session; used by the post-run chat."""
    if session is None:
        return "no saved sessions yet"
    speed = session.distance_m / session.moving_time_s if session.moving_time_s else 0.0
    splits = ", ".join(f"km{i}={format_clock(s)}" for i, s in enumerate(session.splits, start=1))
    return (
        f"last run {session.name}: dist={session.distance_m / 1000:.2f}km, "
        f"time={format_clock(session.moving_time_s)}, avgPace={format_pace(speed)}, "
        f"gain={session.elevation_gain_m:.0f}m, splits=[{splits or 'none'}]"
    )
