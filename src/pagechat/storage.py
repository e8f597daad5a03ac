"""Flat-file persistence of uploaded documents and their derived artifacts.

Every artifact lives directly inside the scratch directory and is keyed by the
document identifier::

    {id}.pdf           original upload
    {id}.json          raw page texts
    {id}.slides.json   cleaned slides with image references
    {id}_images/       images extracted by ``pdfimages``
"""
from __future__ import annotations

import json
import logging
import re
import shutil
import time
from enum import Enum
from pathlib import Path
from typing import Any, Final, List, Optional, Sequence
from uuid import uuid4

from pagechat.ingest.models import Slide

LOGGER = logging.getLogger(__name__)

_DOCUMENT_ID_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class RawPageSetFormat(str, Enum):
    """Shapes accepted for the ``{id}.json`` artifact."""

    ARRAY = "array"
    OBJECT = "object"


def detect_raw_page_format(payload: Any) -> Optional[RawPageSetFormat]:
    """Return the shape of a decoded raw-pages payload, or ``None`` if unknown."""

    if isinstance(payload, list):
        return RawPageSetFormat.ARRAY
    if isinstance(payload, dict) and isinstance(payload.get("pages"), list):
        return RawPageSetFormat.OBJECT
    return None


def decode_raw_pages(payload: Any) -> Optional[List[str]]:
    """Normalise either accepted shape to a plain list of page strings."""

    page_format = detect_raw_page_format(payload)
    if page_format is RawPageSetFormat.ARRAY:
        pages = payload
    elif page_format is RawPageSetFormat.OBJECT:
        pages = payload["pages"]
    else:
        return None
    return ["" if page is None else str(page) for page in pages]


def is_valid_document_id(document_id: str) -> bool:
    return bool(document_id) and _DOCUMENT_ID_RE.match(document_id) is not None


class DocumentStore:
    """Reads and writes the artifact set of each document in the scratch directory."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    @staticmethod
    def new_document_id() -> str:
        return str(uuid4())

    def pdf_path(self, document_id: str) -> Path:
        return self.root / f"{document_id}.pdf"

    def raw_pages_path(self, document_id: str) -> Path:
        return self.root / f"{document_id}.json"

    def slides_path(self, document_id: str) -> Path:
        return self.root / f"{document_id}.slides.json"

    def images_dir(self, document_id: str) -> Path:
        return self.root / f"{document_id}_images"

    def _ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def write_pdf(self, document_id: str, data: bytes) -> Path:
        self._ensure_root()
        destination = self.pdf_path(document_id)
        destination.write_bytes(data)
        LOGGER.info("Saved upload %s (%d bytes)", destination, len(data))
        return destination

    def write_raw_pages(self, document_id: str, pages: Sequence[str]) -> Path:
        self._ensure_root()
        destination = self.raw_pages_path(document_id)
        destination.write_text(json.dumps(list(pages), ensure_ascii=False, indent=2), encoding="utf-8")
        return destination

    def write_slides(self, document_id: str, slides: Sequence[Slide]) -> Path:
        self._ensure_root()
        destination = self.slides_path(document_id)
        payload = [slide.to_json() for slide in slides]
        destination.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        return destination

    def load_raw_pages(self, document_id: str) -> Optional[List[str]]:
        """Return the stored page texts, or ``None`` when missing or unreadable."""

        if not is_valid_document_id(document_id):
            LOGGER.warning("Rejected malformed document id %r", document_id)
            return None
        payload = self._read_json(self.raw_pages_path(document_id))
        if payload is None:
            return None
        pages = decode_raw_pages(payload)
        if pages is None:
            LOGGER.warning("Raw pages artifact for %s has an unrecognised shape", document_id)
        return pages

    def load_slides(self, document_id: str) -> Optional[List[Slide]]:
        if not is_valid_document_id(document_id):
            return None
        payload = self._read_json(self.slides_path(document_id))
        if not isinstance(payload, list):
            return None
        try:
            return [Slide.from_json(item) for item in payload]
        except (KeyError, TypeError, ValueError) as error:
            LOGGER.warning("Slides artifact for %s is malformed: %s", document_id, error)
            return None

    def discard(self, document_id: str) -> None:
        """Remove every artifact written for ``document_id``."""

        for path in (
            self.pdf_path(document_id),
            self.raw_pages_path(document_id),
            self.slides_path(document_id),
        ):
            path.unlink(missing_ok=True)
        shutil.rmtree(self.images_dir(document_id), ignore_errors=True)

    def purge_older_than(self, max_age_seconds: float, *, now: float | None = None) -> List[str]:
        """Discard documents whose upload is older than ``max_age_seconds``."""

        if not self.root.exists():
            return []
        cutoff = (time.time() if now is None else now) - max_age_seconds
        purged: List[str] = []
        for pdf in sorted(self.root.glob("*.pdf")):
            document_id = pdf.stem
            if not is_valid_document_id(document_id):
                continue
            try:
                modified = pdf.stat().st_mtime
            except OSError:
                continue
            if modified < cutoff:
                self.discard(document_id)
                purged.append(document_id)
        return purged

    @staticmethod
    def _read_json(path: Path) -> Any:
        if not path.exists():
            LOGGER.info("Artifact %s does not exist", path)
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as error:
            LOGGER.warning("Failed to read artifact %s: %s", path, error)
            return None


__all__ = [
    "DocumentStore",
    "RawPageSetFormat",
    "decode_raw_pages",
    "detect_raw_page_format",
    "is_valid_document_id",
]
