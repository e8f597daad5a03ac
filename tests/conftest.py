"""Shared fixtures: isolated settings, generated PDFs and a fake LLM endpoint."""
from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence

import pytest

# ``pagechat.main`` configures logging on import; keep its files out of the repository.
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="pagechat-logs-"))
os.environ.setdefault("IMAGE_EXTRACTION", "disabled")

from pagechat import config, llm_provider, services  # noqa: E402
from pagechat.storage import DocumentStore  # noqa: E402


def _escape_pdf_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _content_stream(text: str) -> bytes:
    parts = ["BT /F1 12 Tf 14 TL 72 720 Td"]
    for index, line in enumerate(text.split("\n")):
        if index:
            parts.append("T*")
        parts.append(f"({_escape_pdf_text(line)}) Tj")
    parts.append("ET")
    return " ".join(parts).encode("latin-1")


def build_pdf(page_texts: Sequence[str]) -> bytes:
    """Return a minimal PDF with one Helvetica text block per page."""

    page_numbers = [4 + 2 * index for index in range(len(page_texts))]
    kids = " ".join(f"{number} 0 R" for number in page_numbers)
    objects: List[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(page_texts)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for number, text in zip(page_numbers, page_texts):
        objects.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents {number + 1} 0 R "
                "/Resources << /Font << /F1 3 0 R >> >> >>"
            ).encode()
        )
        stream = _content_stream(text) if text else b""
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    output = bytearray(b"%PDF-1.4\n")
    offsets: List[int] = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_offset = len(output)
    output += f"xref\n0 {len(objects) + 1}\n".encode()
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += f"{offset:010d} 00000 n \n".encode()
    output += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return bytes(output)


@pytest.fixture
def three_page_pdf() -> bytes:
    return build_pdf(["Intro", "Methods", "Results"])


@pytest.fixture
def scratch_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the service at a fresh scratch directory and reset cached singletons."""

    directory = tmp_path / "scratch"
    monkeypatch.setenv("SCRATCH_DIR", str(directory))
    monkeypatch.setenv("IMAGE_EXTRACTION", "disabled")
    monkeypatch.setenv("LLM_API_KEY", "test-key")
    monkeypatch.delenv("LLM_STUB", raising=False)
    config.reset_settings()
    services.reset_services()
    llm_provider.reset_llm()
    yield directory
    config.reset_settings()
    services.reset_services()
    llm_provider.reset_llm()


@pytest.fixture
def store(scratch_dir: Path) -> DocumentStore:
    return DocumentStore(scratch_dir)


def write_raw_pages(store: DocumentStore, document_id: str, payload: Any) -> None:
    store.root.mkdir(parents=True, exist_ok=True)
    store.raw_pages_path(document_id).write_text(json.dumps(payload), encoding="utf-8")


class FakeResponse:
    """Subset of :class:`requests.Response` used by the chat-completion client."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def completion_payload(content: str) -> Dict[str, Any]:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


@dataclass
class RecordedPost:
    """Captures calls made through ``requests.post`` and replays a canned response."""

    response: Any
    calls: List[Dict[str, Any]] = field(default_factory=list)

    def __call__(self, url: str, **kwargs: Any) -> Any:
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.response, BaseException):
            raise self.response
        return self.response

    @property
    def user_prompt(self) -> str:
        return self.calls[-1]["json"]["messages"][1]["content"]


@pytest.fixture
def fake_post(monkeypatch: pytest.MonkeyPatch) -> RecordedPost:
    recorder = RecordedPost(response=FakeResponse(payload=completion_payload("Mocked reply")))
    monkeypatch.setattr(llm_provider.requests, "post", recorder)
    return recorder
