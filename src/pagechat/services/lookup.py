"""Retrieve the stored text of a single page."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from pagechat.storage import DocumentStore
from pagechat.telemetry import emit_lookup_event

LOGGER = logging.getLogger(__name__)

UNKNOWN_PAGE_LABEL = "unknown"


@dataclass(slots=True)
class PageLookup:
    """Outcome of a page lookup; ``text`` is ``None`` when no context exists."""

    text: Optional[str]
    page_number: Optional[int]
    page_label: str

    @property
    def found(self) -> bool:
        return self.text is not None


def _as_page_number(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def resolve_page_index(requested_page: Any, page_count: int) -> int:
    """Map a client supplied page to a 0-based index into ``page_count`` pages.

    1-based numbers win over 0-based ones; anything else falls back to the
    first page.
    """

    number = _as_page_number(requested_page)
    if number is None:
        return 0
    if 1 <= number <= page_count:
        return number - 1
    if 0 <= number <= page_count - 1:
        return number
    LOGGER.warning(
        "Page %r out of range for %d pages; defaulting to the first page", requested_page, page_count
    )
    return 0


def page_label_for(requested_page: Any) -> str:
    if requested_page is None or isinstance(requested_page, bool):
        return UNKNOWN_PAGE_LABEL
    if isinstance(requested_page, (int, float, str)) and str(requested_page).strip():
        return str(requested_page)
    return UNKNOWN_PAGE_LABEL


class PageLookupService:
    """Loads the raw page set from disk on every call and selects one page."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def lookup_page(self, document_id: str, requested_page: Any = None) -> PageLookup:
        pages = self.store.load_raw_pages(document_id)
        if not pages:
            LOGGER.info("No stored page text for document %s", document_id)
            emit_lookup_event(
                document_id=document_id,
                requested_page=requested_page,
                resolved_page=None,
                page_count=len(pages) if pages is not None else None,
                found=False,
            )
            return PageLookup(text=None, page_number=None, page_label=page_label_for(requested_page))

        index = resolve_page_index(requested_page, len(pages))
        page_number = index + 1
        emit_lookup_event(
            document_id=document_id,
            requested_page=requested_page,
            resolved_page=page_number,
            page_count=len(pages),
            found=True,
        )
        return PageLookup(text=pages[index], page_number=page_number, page_label=str(page_number))


__all__ = ["PageLookup", "PageLookupService", "page_label_for", "resolve_page_index"]
