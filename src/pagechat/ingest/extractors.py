"""Per-page text extraction from PDF files."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from pdfminer.high_level import extract_text as pdfminer_extract_text
from PyPDF2 import PdfReader

from pagechat.errors import ExtractionFailureError

LOGGER = logging.getLogger(__name__)

PAGE_SEPARATOR = "\f"


class PageExtractor(ABC):
    """Turns a PDF on disk into one text string per page, page 1 first."""

    name: str = "abstract"

    @abstractmethod
    def extract_pages(self, path: Path) -> List[str]:
        """Return the text of every page or raise :class:`ExtractionFailureError`."""


class PyPDF2PageExtractor(PageExtractor):
    """Extract each page separately with :class:`PyPDF2.PdfReader`."""

    name = "pypdf2"

    def extract_pages(self, path: Path) -> List[str]:
        try:
            reader = PdfReader(str(path))
            page_objects = list(reader.pages)
        except Exception as error:
            raise ExtractionFailureError(f"Could not open PDF {path.name}", cause=error) from error

        pages: List[str] = []
        for index, page in enumerate(page_objects, start=1):
            try:
                pages.append(page.extract_text() or "")
            except Exception as error:
                raise ExtractionFailureError(
                    f"Could not extract text from page {index} of {path.name}", cause=error
                ) from error
        LOGGER.debug("PyPDF2 extracted %d pages from %s", len(pages), path)
        return pages


class PdfminerPageExtractor(PageExtractor):
    """Extract the whole document at once and split it on form-feed page breaks.

    Pages that are blank after trimming are dropped, so the page count can be
    lower than the number of physical pages.
    """

    name = "pdfminer"

    def extract_pages(self, path: Path) -> List[str]:
        try:
            text = pdfminer_extract_text(str(path)) or ""
        except Exception as error:
            raise ExtractionFailureError(f"Could not extract text from {path.name}", cause=error) from error

        pages = [page.strip() for page in text.split(PAGE_SEPARATOR)]
        pages = [page for page in pages if page]
        LOGGER.debug("pdfminer extracted %d non-empty pages from %s", len(pages), path)
        return pages


def get_page_extractor(backend: str) -> PageExtractor:
    """Return the extractor registered under ``backend``."""

    if backend == PyPDF2PageExtractor.name:
        return PyPDF2PageExtractor()
    if backend == PdfminerPageExtractor.name:
        return PdfminerPageExtractor()
    raise ValueError(f"Unsupported PDF text backend: {backend}")


__all__ = [
    "PAGE_SEPARATOR",
    "PageExtractor",
    "PdfminerPageExtractor",
    "PyPDF2PageExtractor",
    "get_page_extractor",
]
