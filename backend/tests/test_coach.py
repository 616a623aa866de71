import json

import httpx
import pytest

from runcoach.core.errors import CoachConfigError, CoachServiceError
from runcoach.services.coach import SYSTEM_PROMPT, CoachClient, describe_session
from runcoach.telemetry.cues import CueSnapshot
from runcoach.telemetry.state import RunState


def _reply(content):
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def _client(handler, api_key="test-key"):
    return CoachClient(api_key=api_key, base_url="http://coach.test/", model="coach-model",
                       transport=httpx.MockTransport(handler))


def test_missing_key_is_a_config_error():
    client = _client(lambda request: _reply("never"), api_key="")
    assert not client.configured
    with pytest.raises(CoachConfigError):
        client.complete([{"role": "user", "content": "hi"}])


def test_cue_request_shape():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return _reply("  Relax your shoulders.  ")

    snapshot = CueSnapshot.from_state(RunState(distance_m=1500, moving_time_s=450))
    text = _client(handler).cue(snapshot)

    assert text == "Relax your shoulders."
    assert seen["url"] == "http://coach.test/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    body = seen["body"]
    assert body["model"] == "coach-model"
    assert body["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert "dist=1.50km" in body["messages"][-1]["content"]


def test_chat_sends_history_then_question():
    seen = {}

    def handler(request):
        seen["messages"] = json.loads(request.content)["messages"]
        return _reply("Take an easy day.")

    history = [
        {"role": "user", "content": "How was my run?", "ts": 1},
        {"role": "assistant", "content": "Solid.", "ts": 2},
    ]
    assert _client(handler).chat("What next?", history, "no saved sessions yet") == "Take an easy day."
    roles = [m["role"] for m in seen["messages"]]
    assert roles == ["system", "user", "assistant", "user"]
    assert seen["messages"][-1]["content"].startswith("What next?")
    assert "ts" not in seen["messages"][1]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"choices": [{"message": {"content": "   "}}]}),
    ],
)
def test_service_failures(response):
    with pytest.raises(CoachServiceError):
        _client(lambda request: response).complete([{"role": "user", "content": "hi"}])


def test_unreachable_service():
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    with pytest.raises(CoachServiceError):
        _client(handler).complete([{"role": "user", "content": "hi"}])


def test_describe_without_sessions():
    assert describe_session(None) == "no saved sessions yet"
