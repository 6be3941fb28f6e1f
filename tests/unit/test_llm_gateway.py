import json

import httpx
import pytest

from config.routes import LlmRoute
from llm_gateway import invoke


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or (json.dumps(payload) if payload is not None else "")

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


def chat(content):
    return FakeResponse(200, {"choices": [{"message": {"content": content}}]})


class FakeClient:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, *, json, headers, params, timeout):
        self.calls.append({"url": url, "json": json, "headers": headers, "params": params, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class SleepRecorder:
    def __init__(self):
        self.waits = []

    def __call__(self, seconds):
        self.waits.append(seconds)


def _route(**overrides):
    data = {
        "name": "test-route",
        "base_url": "http://oracle.local",
        "endpoint": "/v1/chat/completions",
        "model": "test-model",
        "timeout_s": 30.0,
        "retry_delays_s": [1.5, 3.0],
        "pacing_delay_s": 0.0,
    }
    data.update(overrides)
    return LlmRoute(**data)


FALLBACK = {"score": 5, "fallback": True}


def test_extracts_value_from_prose_on_first_attempt():
    client = FakeClient(chat('Here you go:\n```json\n{"score": 8, "clarity": "good",}\n```'))
    sleep = SleepRecorder()
    result = invoke("Evaluate", ["score"], FALLBACK, cfg=_route(), client=client, sleep=sleep)
    assert result == {"score": 8, "clarity": "good"}
    assert len(client.calls) == 1
    assert [w for w in sleep.waits if w] == []


def test_chat_payload_shape():
    client = FakeClient(chat('{"score": 1}'))
    invoke("Prompt text", ["score"], FALLBACK, cfg=_route(), client=client, sleep=SleepRecorder())
    call = client.calls[0]
    assert call["url"] == "http://oracle.local/v1/chat/completions"
    assert call["json"]["messages"] == [{"role": "user", "content": "Prompt text"}]
    assert call["timeout"] == 30.0


def test_generate_content_route_uses_key_param(monkeypatch):
    monkeypatch.setenv("TEST_ORACLE_KEY", "secret")
    route = _route(payload_style="generate_content", api_key_env="TEST_ORACLE_KEY", api_key_param="key")
    response = FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": '{"score": 6}'}]}}]})
    client = FakeClient(response)
    result = invoke("Prompt", ["score"], FALLBACK, cfg=route, client=client, sleep=SleepRecorder())
    assert result == {"score": 6}
    assert client.calls[0]["params"] == {"key": "secret"}
    assert client.calls[0]["json"]["contents"] == [{"parts": [{"text": "Prompt"}]}]


def test_bearer_header_when_no_key_param(monkeypatch):
    monkeypatch.setenv("TEST_ORACLE_KEY", "secret")
    client = FakeClient(chat('{"score": 6}'))
    invoke("Prompt", ["score"], FALLBACK, cfg=_route(api_key_env="TEST_ORACLE_KEY"), client=client, sleep=SleepRecorder())
    assert client.calls[0]["headers"]["Authorization"] == "Bearer secret"


def test_retries_rate_limit_and_server_errors_then_succeeds():
    client = FakeClient(FakeResponse(429, text="slow down"), FakeResponse(503, text="busy"), chat('{"score": 9}'))
    sleep = SleepRecorder()
    result = invoke("Prompt", ["score"], FALLBACK, cfg=_route(), client=client, sleep=sleep)
    assert result == {"score": 9}
    assert len(client.calls) == 3
    assert [w for w in sleep.waits if w] == [1.5, 3.0]


def test_network_errors_are_retried():
    client = FakeClient(httpx.ConnectTimeout("timed out"), chat('{"score": 3}'))
    result = invoke("Prompt", ["score"], FALLBACK, cfg=_route(), client=client, sleep=SleepRecorder())
    assert result == {"score": 3}


def test_client_error_fails_fast_with_fallback():
    client = FakeClient(FakeResponse(400, text="bad request"), chat('{"score": 9}'))
    result = invoke("Prompt", ["score"], FALLBACK, cfg=_route(), client=client, sleep=SleepRecorder())
    assert result is FALLBACK
    assert len(client.calls) == 1


def test_garbage_exhausts_retries_and_returns_fallback_unchanged():
    client = FakeClient(chat("no json here"), chat("still nothing"), chat("<html>oops</html>"))
    fallback = {"score": 5, "notes": ["untouched"]}
    result = invoke("Prompt", ["score"], fallback, cfg=_route(), client=client, sleep=SleepRecorder())
    assert result is fallback
    assert result == {"score": 5, "notes": ["untouched"]}
    assert len(client.calls) == 3


def test_schema_violation_is_retried():
    client = FakeClient(chat('{"clarity": "ok"}'), chat('{"score": 7, "clarity": "ok"}'))
    result = invoke("Prompt", ["score", "clarity"], FALLBACK, cfg=_route(), client=client, sleep=SleepRecorder())
    assert result == {"score": 7, "clarity": "ok"}
    assert len(client.calls) == 2


def test_missing_credentials_never_calls_out(monkeypatch):
    monkeypatch.delenv("ABSENT_ORACLE_KEY", raising=False)
    client = FakeClient()
    result = invoke(
        "Prompt",
        ["score"],
        None,
        cfg=_route(api_key_env="ABSENT_ORACLE_KEY"),
        client=client,
        sleep=SleepRecorder(),
    )
    assert result is None
    assert client.calls == []


def test_non_json_envelope_is_parse_failure():
    client = FakeClient(FakeResponse(200, None, text="plain"), chat('{"score": 2}'))
    result = invoke("Prompt", ["score"], FALLBACK, cfg=_route(), client=client, sleep=SleepRecorder())
    assert result == {"score": 2}


@pytest.mark.parametrize("max_retries,expected_calls", [(0, 1), (1, 2)])
def test_route_retry_limit(max_retries, expected_calls):
    client = FakeClient(*[FakeResponse(500) for _ in range(expected_calls)])
    result = invoke("Prompt", ["score"], FALLBACK, cfg=_route(max_retries=max_retries), client=client, sleep=SleepRecorder())
    assert result is FALLBACK
    assert len(client.calls) == expected_calls


def test_sequential_route_still_returns_value():
    client = FakeClient(chat('{"score": 4}'))
    result = invoke("Prompt", ["score"], FALLBACK, cfg=_route(sequential=True), client=client, sleep=SleepRecorder())
    assert result == {"score": 4}


@pytest.mark.parametrize(
    "envelope",
    [
        {"candidates": [{"content": "oops"}]},
        {"candidates": [{"content": {"parts": "oops"}}]},
        {"candidates": ["oops"]},
        {"choices": ["oops"]},
        ["not", "an", "object"],
    ],
)
def test_malformed_envelope_degrades_to_fallback(envelope):
    client = FakeClient(*[FakeResponse(200, envelope) for _ in range(3)])
    result = invoke("Prompt", ["score"], FALLBACK, cfg=_route(), client=client, sleep=SleepRecorder())
    assert result is FALLBACK
    assert len(client.calls) == 3


def test_deeply_nested_reply_degrades_to_fallback():
    nested = "[" * 100000 + "]" * 100000
    client = FakeClient(*[chat(nested) for _ in range(3)])
    result = invoke("Prompt", [], FALLBACK, cfg=_route(), client=client, sleep=SleepRecorder())
    assert result is FALLBACK
