"""Tests for the LLM client's retry behaviour."""

from __future__ import annotations

import asyncio
import io
import json
import urllib.error

import pytest

from codestory.errors import LLMError
from codestory.llm import LLMClient, _is_retryable


def _client(**kwargs) -> LLMClient:
    return LLMClient(api_key="sk-test", base_backoff_seconds=0.0, **kwargs)


def test_create_response_fills_in_model(monkeypatch) -> None:
    client = _client(model="gpt-4.1")
    seen: list[tuple[str, dict]] = []

    def _fake_post(path, payload):
        seen.append((path, payload))
        return {"output": []}

    monkeypatch.setattr(client, "_post_sync", _fake_post)

    result = asyncio.run(client.create_response({"input": "hi"}))

    assert result == {"output": []}
    assert seen == [("responses", {"model": "gpt-4.1", "input": "hi"})]


def test_payload_model_wins(monkeypatch) -> None:
    client = _client()
    seen: list[dict] = []
    monkeypatch.setattr(client, "_post_sync", lambda path, payload: seen.append(payload) or {})

    asyncio.run(client.create_response({"model": "other"}))

    assert seen[0]["model"] == "other"


def test_retries_rate_limits(monkeypatch) -> None:
    client = _client()
    attempts = {"n": 0}

    def _flaky(path, payload):
        attempts["n"] += 1
        if attempts["n"] < 3:
            raise LLMError("OpenAI API error (429): slow down", status=429)
        return {"ok": True}

    monkeypatch.setattr(client, "_post_sync", _flaky)

    assert asyncio.run(client.create_response({})) == {"ok": True}
    stats = asyncio.run(client.get_stats())
    assert stats == {"total_calls": 1, "retries": 2}


def test_client_errors_are_not_retried(monkeypatch) -> None:
    client = _client()
    attempts = {"n": 0}

    def _bad_request(path, payload):
        attempts["n"] += 1
        raise LLMError("OpenAI API error (400): bad schema", status=400)

    monkeypatch.setattr(client, "_post_sync", _bad_request)

    with pytest.raises(LLMError):
        asyncio.run(client.create_response({}))
    assert attempts["n"] == 1


def test_gives_up_after_max_retries(monkeypatch) -> None:
    client = _client(max_retries=2)
    attempts = {"n": 0}

    def _down(path, payload):
        attempts["n"] += 1
        raise LLMError("OpenAI API error (503): unavailable", status=503)

    monkeypatch.setattr(client, "_post_sync", _down)

    with pytest.raises(LLMError):
        asyncio.run(client.create_response({}))
    assert attempts["n"] == 3


def test_http_error_becomes_llm_error(monkeypatch) -> None:
    client = _client()

    def _raise(req, timeout):
        raise urllib.error.HTTPError(
            req.full_url, 401, "Unauthorized", {}, io.BytesIO(b'{"error": "bad key"}')
        )

    monkeypatch.setattr("urllib.request.urlopen", _raise)

    with pytest.raises(LLMError) as excinfo:
        client._post_sync("responses", {"model": "m"})
    assert excinfo.value.status == 401
    assert "bad key" in str(excinfo.value)


def test_post_sync_sends_bearer_token(monkeypatch) -> None:
    client = _client(base_url="https://example.test/v1/")
    captured = {}

    class _Resp(io.BytesIO):
        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    def _urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["auth"] = req.get_header("Authorization")
        captured["body"] = json.loads(req.data.decode("utf-8"))
        return _Resp(b'{"id": "resp_1"}')

    monkeypatch.setattr("urllib.request.urlopen", _urlopen)

    assert client._post_sync("responses", {"model": "m"}) == {"id": "resp_1"}
    assert captured["url"] == "https://example.test/v1/responses"
    assert captured["auth"] == "Bearer sk-test"
    assert captured["body"] == {"model": "m"}


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (LLMError("x", status=429), True),
        (LLMError("x", status=502), True),
        (LLMError("x", status=404), False),
        (LLMError("OpenAI request failed: timed out"), True),
        (LLMError("OpenAI returned non-JSON body"), False),
    ],
)
def test_is_retryable(exc: LLMError, expected: bool) -> None:
    assert _is_retryable(exc) is expected
