"""Raster image extraction backed by poppler's ``pdfimages`` binary."""
from __future__ import annotations

import logging
import re
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List

from pagechat.errors import ExtractionFailureError, ExtractionUnavailableError

LOGGER = logging.getLogger(__name__)

PDFIMAGES_BINARY = "pdfimages"


class ImageExtractor(ABC):
    """Maps 1-based page numbers to the image files found on that page."""

    name: str = "abstract"

    @abstractmethod
    def extract_images(self, pdf_path: Path, dest_dir: Path, prefix: str) -> Dict[int, List[str]]:
        """Extract images of ``pdf_path`` into ``dest_dir`` using ``prefix`` for file names."""


class DisabledImageExtractor(ImageExtractor):
    """Stand-in used on hosts where image extraction is switched off."""

    name = "disabled"

    def extract_images(self, pdf_path: Path, dest_dir: Path, prefix: str) -> Dict[int, List[str]]:
        return {}


class PdfImagesExtractor(ImageExtractor):
    """Run ``pdfimages -p -png`` and collect the ``<prefix>-<page>-<index>.png`` files."""

    name = "pdfimages"

    def __init__(self, binary: str = PDFIMAGES_BINARY, timeout_seconds: float | None = 60.0) -> None:
        self.binary = binary
        self.timeout_seconds = timeout_seconds

    def extract_images(self, pdf_path: Path, dest_dir: Path, prefix: str) -> Dict[int, List[str]]:
        dest_dir.mkdir(parents=True, exist_ok=True)
        cmd = [self.binary, "-p", "-png", str(pdf_path), str(dest_dir / prefix)]
        LOGGER.debug("Running image extraction command: %s", " ".join(cmd))
        try:
            subprocess.run(
                cmd,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError as exc:
            raise ExtractionUnavailableError(f"{self.binary} is not installed", cause=exc) from exc
        except subprocess.TimeoutExpired as exc:
            raise ExtractionFailureError(
                f"{self.binary} timed out after {self.timeout_seconds}s", cause=exc
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or b"").decode(errors="ignore")
            raise ExtractionFailureError(f"{self.binary} failed: {stderr}", cause=exc) from exc

        return collect_page_images(dest_dir, prefix)


def collect_page_images(dest_dir: Path, prefix: str) -> Dict[int, List[str]]:
    """Group files named ``<prefix>-<page>-<index>.png`` by page number.

    References are relative to the parent of ``dest_dir`` (the scratch
    directory); anything not matching the naming scheme is ignored.
    """

    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)-(\d+)\.png$")
    page_images: Dict[int, List[str]] = {}
    for entry in sorted(dest_dir.iterdir()):
        if not entry.is_file():
            continue
        match = pattern.match(entry.name)
        if match is None:
            continue
        page_number = int(match.group(1))
        page_images.setdefault(page_number, []).append(f"{dest_dir.name}/{entry.name}")
    return page_images


def build_image_extractor(mode: str, *, timeout_seconds: float | None = 60.0) -> ImageExtractor:
    """Pick the extractor for ``mode`` (``auto``, ``enabled`` or ``disabled``).

    ``auto`` probes the ``PATH`` once; ``enabled`` always returns the
    ``pdfimages`` backend, which then reports a missing binary per call.
    """

    if mode == "disabled":
        return DisabledImageExtractor()
    if mode == "enabled":
        return PdfImagesExtractor(timeout_seconds=timeout_seconds)
    if mode == "auto":
        if shutil.which(PDFIMAGES_BINARY):
            return PdfImagesExtractor(timeout_seconds=timeout_seconds)
        LOGGER.info("%s not found on PATH; image extraction disabled", PDFIMAGES_BINARY)
        return DisabledImageExtractor()
    raise ValueError(f"Unsupported image extraction mode: {mode}")


__all__ = [
    "DisabledImageExtractor",
    "ImageExtractor",
    "PdfImagesExtractor",
    "build_image_extractor",
    "collect_page_images",
]
