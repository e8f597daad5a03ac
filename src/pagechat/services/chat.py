from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from pagechat.config import Settings
from pagechat.errors import InvalidInputError, PageChatError
from pagechat.llm_provider import LLM, get_llm
from pagechat.prompt_builder import SYSTEM_PROMPT, PromptContext, build_prompt
from pagechat.storage import DocumentStore
from pagechat.telemetry import (
    emit_exception,
    emit_inference_request,
    emit_inference_result,
    emit_prompt_event,
)

from .lookup import PageLookupService, page_label_for

LOGGER = logging.getLogger(__name__)

NO_REPLY_PLACEHOLDER = "No reply generated by the model."


@dataclass(slots=True)
class ChatContext:
    """State of one chat turn as sent by the viewer: document, visible page, question."""

    document_id: str
    question: Any
    requested_page: Any = None


class ChatService:
    """Answers a question about one page; every call is independent of earlier turns."""

    def __init__(
        self,
        lookup: PageLookupService,
        llm: Optional[LLM] = None,
        *,
        temperature: float = 0.2,
    ) -> None:
        self.lookup = lookup
        self._llm = llm
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings, llm: Optional[LLM] = None) -> "ChatService":
        return cls(
            PageLookupService(DocumentStore(settings.scratch_dir)),
            llm,
            temperature=settings.llm_temperature,
        )

    @property
    def llm(self) -> LLM:
        return self._llm if self._llm is not None else get_llm()

    def answer(self, document_id: str, page: Any, question: Any) -> str:
        return self.answer_context(ChatContext(document_id=document_id, question=question, requested_page=page))

    def answer_context(self, context: ChatContext) -> str:
        question = context.question
        if not isinstance(question, str) or not question.strip():
            raise InvalidInputError("Missing 'message' in request body.")

        lookup = self.lookup.lookup_page(context.document_id, context.requested_page)
        # ungrounded prompts name the page as the client sent it
        page_label = lookup.page_label if lookup.text else page_label_for(context.requested_page)
        prompt_context = PromptContext(
            document_id=context.document_id,
            question=question,
            page_text=lookup.text,
            page_label=page_label,
        )
        prompt = build_prompt(prompt_context)
        emit_prompt_event(
            document_id=context.document_id,
            template="grounded" if prompt_context.grounded else "fallback",
            page_label=prompt_context.page_label,
            context_chars=len(lookup.text or ""),
        )

        llm = self.llm
        req_id = uuid.uuid4().hex
        emit_inference_request(
            req_id=req_id,
            document_id=context.document_id,
            model=llm.model_name,
            prompt_preview=prompt,
            prompt_len=len(prompt),
            temperature=self.temperature,
        )
        started = time.perf_counter()
        try:
            reply = llm.complete(SYSTEM_PROMPT, prompt, self.temperature)
        except PageChatError as error:
            emit_exception(
                module=f"{__name__}.llm",
                error=error,
                req_id=req_id,
                document_id=context.document_id,
            )
            raise

        fallback = reply is None
        if fallback:
            LOGGER.warning("Chat-completion response for %s carried no reply", context.document_id)
            reply = NO_REPLY_PLACEHOLDER
        emit_inference_result(
            req_id=req_id,
            document_id=context.document_id,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            model_used=llm.model_name,
            answer_preview=reply,
            fallback=fallback,
        )
        return reply


__all__ = ["ChatContext", "ChatService", "NO_REPLY_PLACEHOLDER"]
