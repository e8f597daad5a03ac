"""API router exposing document upload and page chat endpoints."""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from pagechat.errors import InvalidInputError
from pagechat.ingest.pipeline import IngestPipeline
from pagechat.services import (
    ChatContext,
    ChatService,
    get_chat_service,
    get_document_store,
    get_ingest_pipeline,
)
from pagechat.storage import DocumentStore

router = APIRouter(prefix="/documents", tags=["documents"])


class DocumentPayload(BaseModel):
    id: str
    pageCount: int
    hasStructured: bool
    hasImages: bool


class UploadResponse(BaseModel):
    """Response body returned from the upload endpoint."""

    document: DocumentPayload


class ChatRequest(BaseModel):
    """Request body accepted by the chat endpoint."""

    message: Optional[str] = Field(None, description="Question about the visible page.")
    page: Any = Field(None, description="Visible page, 1-based (0-based values are accepted too).")


class ChatResponse(BaseModel):
    reply: str


class SlidePayload(BaseModel):
    pageNumber: int
    lines: list[str]
    images: list[str]


class SlidesResponse(BaseModel):
    slides: list[SlidePayload]


@router.post("", response_model=UploadResponse)
async def upload_document(
    file: Optional[UploadFile] = File(None),
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> UploadResponse:
    """Store a PDF, extract its pages and return the document summary."""

    if file is None:
        raise InvalidInputError("Invalid file")

    contents = await file.read()
    summary = await run_in_threadpool(pipeline.ingest, contents)
    return UploadResponse(document=DocumentPayload(**summary.to_json()))


@router.post("/{document_id}/chat", response_model=ChatResponse)
def chat_with_page(
    document_id: str,
    request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Answer a question about the page currently shown in the viewer."""

    context = ChatContext(document_id=document_id, question=request.message, requested_page=request.page)
    return ChatResponse(reply=chat_service.answer_context(context))


@router.get("/{document_id}/slides", response_model=SlidesResponse)
def get_slides(
    document_id: str,
    store: DocumentStore = Depends(get_document_store),
) -> SlidesResponse:
    """Return the cleaned per-page lines and image references of a document."""

    slides = store.load_slides(document_id)
    if slides is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return SlidesResponse(slides=[SlidePayload(**slide.to_json()) for slide in slides])
