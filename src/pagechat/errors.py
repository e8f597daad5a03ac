"""Error taxonomy shared by ingestion, lookup and the chat relay."""
from __future__ import annotations


class PageChatError(RuntimeError):
    """Base class for failures surfaced to HTTP clients as ``{"error": ...}``."""

    status_code: int = 500

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class InvalidInputError(PageChatError):
    """Raised when a request is missing required fields or carries bad data."""

    status_code = 400


class ExtractionFailureError(PageChatError):
    """Raised when a PDF cannot be parsed or an extraction tool fails on it."""


class ExtractionUnavailableError(PageChatError):
    """Raised when optional extraction tooling is not installed on the host."""


class UpstreamError(PageChatError):
    """Raised when the chat-completion endpoint answers with a non-success status."""

    def __init__(self, message: str, *, upstream_status: int, body: str) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class UpstreamUnavailableError(PageChatError):
    """Raised when the chat-completion endpoint cannot be reached or times out."""


__all__ = [
    "ExtractionFailureError",
    "ExtractionUnavailableError",
    "InvalidInputError",
    "PageChatError",
    "UpstreamError",
    "UpstreamUnavailableError",
]
