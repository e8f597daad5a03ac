"""Tests for the chat-completion client with ``requests.post`` faked out."""
from __future__ import annotations

import pytest
import requests

from conftest import FakeResponse, RecordedPost, completion_payload
from pagechat import llm_provider
from pagechat.config import Settings
from pagechat.errors import UpstreamError, UpstreamUnavailableError
from pagechat.llm_provider import (
    DEFAULT_STUB_RESPONSE,
    ChatCompletionClient,
    LLMStub,
    build_llm,
    extract_reply,
)


def _client(api_key: str | None = "secret") -> ChatCompletionClient:
    return ChatCompletionClient(
        api_key=api_key,
        base_url="https://llm.example.test/v1/",
        model="test-model",
        timeout_seconds=7.5,
    )


def test_complete_sends_system_and_user_messages(fake_post: RecordedPost) -> None:
    reply = _client().complete("system text", "user text", 0.2)

    assert reply == "Mocked reply"
    call = fake_post.calls[0]
    assert call["url"] == "https://llm.example.test/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["timeout"] == 7.5
    assert call["json"] == {
        "model": "test-model",
        "messages": [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ],
        "temperature": 0.2,
    }


def test_complete_without_key_omits_authorization(fake_post: RecordedPost) -> None:
    _client(api_key=None).complete("s", "u", 0.2)

    assert "Authorization" not in fake_post.calls[0]["headers"]


def test_non_success_status_raises_upstream_error_with_body(fake_post: RecordedPost) -> None:
    fake_post.response = FakeResponse(status_code=500, text='{"error":"overloaded"}')

    with pytest.raises(UpstreamError) as excinfo:
        _client().complete("s", "u", 0.2)

    assert excinfo.value.upstream_status == 500
    assert excinfo.value.body == '{"error":"overloaded"}'
    assert "overloaded" in str(excinfo.value)


@pytest.mark.parametrize("error", (requests.Timeout("slow"), requests.ConnectionError("refused")))
def test_transport_failures_raise_upstream_unavailable(fake_post: RecordedPost, error: Exception) -> None:
    fake_post.response = error

    with pytest.raises(UpstreamUnavailableError):
        _client().complete("s", "u", 0.2)


def test_unparseable_body_yields_no_reply(fake_post: RecordedPost) -> None:
    fake_post.response = FakeResponse(status_code=200, payload=None, text="<html>")

    assert _client().complete("s", "u", 0.2) is None


@pytest.mark.parametrize(
    "data",
    (
        {},
        {"choices": []},
        {"choices": [{}]},
        {"choices": [{"message": {"content": None}}]},
        {"choices": "nope"},
        None,
    ),
)
def test_extract_reply_returns_none_for_missing_content(data) -> None:  # noqa: ANN001
    assert extract_reply(data) is None


def test_extract_reply_returns_first_choice() -> None:
    data = completion_payload("first")
    data["choices"].append({"message": {"content": "second"}})

    assert extract_reply(data) == "first"


def test_build_llm_honours_stub_flag() -> None:
    llm = build_llm(Settings(llm_stub=True))

    assert isinstance(llm, LLMStub)
    assert llm.complete("s", "u", 0.2) == DEFAULT_STUB_RESPONSE
    assert llm.status().provider == "stub"


def test_build_llm_uses_configured_endpoint() -> None:
    llm = build_llm(Settings(llm_api_key="k", llm_base_url="https://x.test/v1", llm_model="m"))

    assert isinstance(llm, ChatCompletionClient)
    status = llm.status()
    assert (status.provider, status.model_name, status.base_url) == ("http", "m", "https://x.test/v1")
    assert status.credential_configured is True


def test_get_llm_caches_until_reset(scratch_dir, monkeypatch: pytest.MonkeyPatch) -> None:  # noqa: ANN001
    first = llm_provider.get_llm()

    assert llm_provider.get_llm() is first
    llm_provider.reset_llm()
    assert llm_provider.get_llm() is not first
