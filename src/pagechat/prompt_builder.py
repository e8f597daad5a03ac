"""Prompt templates for page-grounded questions."""
from __future__ import annotations

from dataclasses import dataclass

SYSTEM_PROMPT = (
    "You are a helpful assistant for a PDF viewer app. "
    "When page text is provided, base your answers strictly on that text."
)

GROUNDED_TEMPLATE = """You are given the text of a PDF page.
Answer the user's question using only this text.

PAGE NUMBER: {page_label}

PAGE TEXT:
{page_text}

USER QUESTION:
{question}"""

FALLBACK_TEMPLATE = """I do not have the text of the document.
Please answer the user's question as best as you can.

DOCUMENT ID: {document_id}
PAGE: {page_label}

USER QUESTION:
{question}"""


@dataclass(slots=True)
class PromptContext:
    """Everything needed to phrase a single chat request."""

    document_id: str
    question: str
    page_text: str | None = None
    page_label: str = "unknown"

    @property
    def grounded(self) -> bool:
        return bool(self.page_text)


def build_prompt(context: PromptContext) -> str:
    """Return the user message for ``context``."""

    if context.question is None:
        raise ValueError("question must not be None")

    question = context.question.strip()
    if context.grounded:
        return GROUNDED_TEMPLATE.format(
            page_label=context.page_label,
            page_text=context.page_text,
            question=question,
        )
    return FALLBACK_TEMPLATE.format(
        document_id=context.document_id,
        page_label=context.page_label,
        question=question,
    )


__all__ = ["FALLBACK_TEMPLATE", "GROUNDED_TEMPLATE", "PromptContext", "SYSTEM_PROMPT", "build_prompt"]
