"""Data models used by the ingestion pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(slots=True)
class Slide:
    """Cleaned, per-page view of a document."""

    page_number: int
    lines: List[str]
    images: List[str] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {"pageNumber": self.page_number, "lines": list(self.lines), "images": list(self.images)}

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "Slide":
        return cls(
            page_number=int(payload["pageNumber"]),
            lines=[str(line) for line in payload.get("lines") or []],
            images=[str(image) for image in payload.get("images") or []],
        )


@dataclass(slots=True)
class DocumentSummary:
    """Summary returned to the client once a document has been ingested."""

    id: str
    page_count: int
    has_structured: bool
    has_images: bool

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pageCount": self.page_count,
            "hasStructured": self.has_structured,
            "hasImages": self.has_images,
        }
