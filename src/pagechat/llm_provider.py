"""Client for the hosted, OpenAI-compatible chat-completion endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

from pagechat.config import Settings, get_settings
from pagechat.errors import UpstreamError, UpstreamUnavailableError

LOGGER = logging.getLogger(__name__)

DEFAULT_STUB_RESPONSE = "The language model is not configured. Please try again later."


@dataclass(slots=True)
class LLMStatus:
    """Configuration status of the relay, reported without calling the vendor."""

    provider: str
    model_name: str
    base_url: Optional[str]
    credential_configured: bool


class LLM:
    """Common interface exposed by chat-completion backends."""

    def complete(self, system_prompt: str, user_prompt: str, temperature: float) -> Optional[str]:
        """Return the reply text, or ``None`` when the response carried no reply."""

        raise NotImplementedError

    @property
    def model_name(self) -> str:
        return "stub"

    def status(self) -> LLMStatus:
        return LLMStatus(provider="stub", model_name=self.model_name, base_url=None, credential_configured=False)


class LLMStub(LLM):
    """Offline backend returning a fixed message, enabled with ``LLM_STUB``."""

    def __init__(self, message: str = DEFAULT_STUB_RESPONSE) -> None:
        self._message = message

    def complete(self, system_prompt: str, user_prompt: str, temperature: float) -> Optional[str]:
        return self._message


class ChatCompletionClient(LLM):
    """Sends one system + one user message to ``{base_url}/chat/completions``."""

    def __init__(
        self,
        *,
        api_key: Optional[str],
        base_url: str,
        model: str,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout_seconds

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/chat/completions"

    def status(self) -> LLMStatus:
        return LLMStatus(
            provider="http",
            model_name=self._model,
            base_url=self._base_url,
            credential_configured=bool(self._api_key),
        )

    def complete(self, system_prompt: str, user_prompt: str, temperature: float) -> Optional[str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        else:
            LOGGER.warning("No LLM API key configured; sending unauthenticated request")
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
        }

        try:
            response = requests.post(self.endpoint, headers=headers, json=payload, timeout=self._timeout)
        except requests.Timeout as error:
            raise UpstreamUnavailableError(
                f"LLM API did not answer within {self._timeout}s", cause=error
            ) from error
        except requests.RequestException as error:
            raise UpstreamUnavailableError(f"LLM API is unreachable: {error}", cause=error) from error

        if not response.ok:
            body = response.text
            LOGGER.error("LLM API error %s: %s", response.status_code, body)
            raise UpstreamError(
                f"LLM API error: {body}",
                upstream_status=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError:
            LOGGER.warning("LLM API returned a non-JSON body")
            return None
        return extract_reply(data)


def extract_reply(data: Any) -> Optional[str]:
    """Pull ``choices[0].message.content`` out of a decoded response body."""

    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(content, str):
        return None
    return content


_GLOBAL_LLM: Optional[LLM] = None


def build_llm(settings: Settings) -> LLM:
    if settings.llm_stub:
        LOGGER.warning("LLM_STUB flag enabled; using stub responses only.")
        return LLMStub()
    if not settings.llm_api_key:
        LOGGER.warning("LLM_API_KEY is not configured; upstream calls will likely be rejected.")
    return ChatCompletionClient(
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        timeout_seconds=settings.llm_timeout_seconds,
    )


def get_llm() -> LLM:
    """Return the process-wide chat-completion backend."""

    global _GLOBAL_LLM

    if _GLOBAL_LLM is None:
        _GLOBAL_LLM = build_llm(get_settings())
    return _GLOBAL_LLM


def reset_llm() -> None:
    global _GLOBAL_LLM
    _GLOBAL_LLM = None


def get_llm_status() -> LLMStatus:
    return get_llm().status()


__all__ = [
    "DEFAULT_STUB_RESPONSE",
    "LLM",
    "LLMStatus",
    "LLMStub",
    "ChatCompletionClient",
    "build_llm",
    "extract_reply",
    "get_llm",
    "get_llm_status",
    "reset_llm",
]
