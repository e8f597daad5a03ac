"""High level ingestion pipeline entry point."""
from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Sequence

from pagechat.config import Settings
from pagechat.errors import ExtractionUnavailableError, InvalidInputError
from pagechat.logging_config import AUDIT_LOGGER_NAME
from pagechat.storage import DocumentStore
from pagechat.telemetry import emit_exception, emit_ingest_event

from .extractors import PageExtractor, get_page_extractor
from .images import ImageExtractor, build_image_extractor
from .models import DocumentSummary, Slide
from .normalization import LineCleaningOptions, clean_lines

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger(AUDIT_LOGGER_NAME)


def build_slides(
    raw_pages: Sequence[str],
    page_images: Optional[Dict[int, List[str]]] = None,
    options: Optional[LineCleaningOptions] = None,
) -> List[Slide]:
    """Create one slide per raw page, attaching images by page number."""

    page_images = page_images or {}
    return [
        Slide(
            page_number=page_number,
            lines=clean_lines(text, options),
            images=list(page_images.get(page_number, [])),
        )
        for page_number, text in enumerate(raw_pages, start=1)
    ]


class IngestPipeline:
    """Persist an upload, extract its pages and store the derived artifacts."""

    def __init__(
        self,
        store: DocumentStore,
        page_extractor: PageExtractor,
        image_extractor: ImageExtractor,
        line_cleaning: Optional[LineCleaningOptions] = None,
    ) -> None:
        self.store = store
        self.page_extractor = page_extractor
        self.image_extractor = image_extractor
        self.line_cleaning = line_cleaning

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestPipeline":
        return cls(
            store=DocumentStore(settings.scratch_dir),
            page_extractor=get_page_extractor(settings.pdf_text_backend),
            image_extractor=build_image_extractor(
                settings.image_extraction,
                timeout_seconds=settings.image_extraction_timeout_seconds,
            ),
            line_cleaning=settings.line_cleaning,
        )

    def ingest(self, file_bytes: bytes) -> DocumentSummary:
        """Process an uploaded PDF and return the summary of the new document."""

        if not isinstance(file_bytes, (bytes, bytearray)) or not file_bytes:
            raise InvalidInputError("Invalid file")

        started = time.perf_counter()
        document_id = self.store.new_document_id()
        emit_ingest_event(
            "ingest.file.start",
            document_id=document_id,
            size_bytes=len(file_bytes),
            backend=self.page_extractor.name,
        )

        try:
            summary = self._run(document_id, bytes(file_bytes))
        except Exception as error:
            LOGGER.warning("Ingestion of %s failed; discarding partial artifacts", document_id)
            emit_exception(module=f"{__name__}.ingest", error=error, document_id=document_id)
            self.store.discard(document_id)
            raise

        emit_ingest_event(
            "ingest.file.complete",
            document_id=document_id,
            size_bytes=len(file_bytes),
            duration_ms=(time.perf_counter() - started) * 1000.0,
            pages=summary.page_count,
            images=int(summary.has_images),
            backend=self.page_extractor.name,
        )
        AUDIT_LOGGER.info(
            {
                "event": "ingest",
                "document_id": document_id,
                "page_count": summary.page_count,
                "has_images": summary.has_images,
            }
        )
        return summary

    def _run(self, document_id: str, file_bytes: bytes) -> DocumentSummary:
        pdf_path = self.store.write_pdf(document_id, file_bytes)

        raw_pages = self.page_extractor.extract_pages(pdf_path)
        LOGGER.info("Extracted %d pages for %s", len(raw_pages), document_id)
        self.store.write_raw_pages(document_id, raw_pages)

        page_images = self._extract_images(document_id)
        slides = build_slides(raw_pages, page_images, self.line_cleaning)
        self.store.write_slides(document_id, slides)

        return DocumentSummary(
            id=document_id,
            page_count=len(raw_pages),
            has_structured=True,
            has_images=bool(page_images),
        )

    def _extract_images(self, document_id: str) -> Dict[int, List[str]]:
        try:
            return self.image_extractor.extract_images(
                self.store.pdf_path(document_id),
                self.store.images_dir(document_id),
                document_id,
            )
        except ExtractionUnavailableError as error:
            LOGGER.warning("Image extraction unavailable for %s: %s", document_id, error)
            return {}


__all__ = ["IngestPipeline", "build_slides"]
