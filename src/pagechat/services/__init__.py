"""Request-level services and their FastAPI dependency factories."""
from __future__ import annotations

from typing import Optional

from pagechat.config import get_settings
from pagechat.ingest.pipeline import IngestPipeline
from pagechat.storage import DocumentStore

from .chat import ChatContext, ChatService, NO_REPLY_PLACEHOLDER
from .lookup import PageLookup, PageLookupService, resolve_page_index

_ingest_pipeline: Optional[IngestPipeline] = None
_chat_service: Optional[ChatService] = None


def get_ingest_pipeline() -> IngestPipeline:
    """FastAPI dependency returning the shared :class:`IngestPipeline`."""

    global _ingest_pipeline
    if _ingest_pipeline is None:
        _ingest_pipeline = IngestPipeline.from_settings(get_settings())
    return _ingest_pipeline


def get_chat_service() -> ChatService:
    """FastAPI dependency returning the shared :class:`ChatService`."""

    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService.from_settings(get_settings())
    return _chat_service


def get_document_store() -> DocumentStore:
    return DocumentStore(get_settings().scratch_dir)


def reset_services() -> None:
    global _ingest_pipeline, _chat_service
    _ingest_pipeline = None
    _chat_service = None


__all__ = [
    "ChatContext",
    "ChatService",
    "NO_REPLY_PLACEHOLDER",
    "PageLookup",
    "PageLookupService",
    "get_chat_service",
    "get_document_store",
    "get_ingest_pipeline",
    "reset_services",
    "resolve_page_index",
]
