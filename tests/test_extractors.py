from pathlib import Path

import pytest

from conftest import build_pdf
from pagechat.errors import ExtractionFailureError
from pagechat.ingest import extractors
from pagechat.ingest.extractors import PdfminerPageExtractor, PyPDF2PageExtractor, get_page_extractor


def _write(tmp_path: Path, data: bytes, name: str = "doc.pdf") -> Path:
    path = tmp_path / name
    path.write_bytes(data)
    return path


def test_pypdf2_extracts_one_string_per_page(tmp_path: Path) -> None:
    path = _write(tmp_path, build_pdf(["Intro", "Methods", "Results"]))

    pages = PyPDF2PageExtractor().extract_pages(path)

    assert [page.strip() for page in pages] == ["Intro", "Methods", "Results"]


def test_pypdf2_keeps_blank_pages(tmp_path: Path) -> None:
    path = _write(tmp_path, build_pdf(["Cover", "", "Appendix"]))

    pages = PyPDF2PageExtractor().extract_pages(path)

    assert len(pages) == 3
    assert pages[1].strip() == ""


def test_pypdf2_raises_extraction_failure_on_corrupt_file(tmp_path: Path) -> None:
    path = _write(tmp_path, b"this is not a pdf at all")

    with pytest.raises(ExtractionFailureError):
        PyPDF2PageExtractor().extract_pages(path)


def test_pypdf2_raises_extraction_failure_on_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ExtractionFailureError):
        PyPDF2PageExtractor().extract_pages(tmp_path / "missing.pdf")


def test_pdfminer_splits_on_form_feed_and_drops_blank_pages(tmp_path: Path) -> None:
    pytest.importorskip("pdfminer.high_level", reason="pdfminer.six is required for this backend")
    path = _write(tmp_path, build_pdf(["Intro", "", "Results"]))

    pages = PdfminerPageExtractor().extract_pages(path)

    assert pages == ["Intro", "Results"]


def test_pdfminer_split_logic_without_parsing(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(extractors, "pdfminer_extract_text", lambda _: " one \n\f\f  \n\ftwo\n\f")

    assert PdfminerPageExtractor().extract_pages(tmp_path / "x.pdf") == ["one", "two"]


def test_pdfminer_wraps_parser_errors(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def boom(_: str) -> str:
        raise ValueError("bad xref")

    monkeypatch.setattr(extractors, "pdfminer_extract_text", boom)

    with pytest.raises(ExtractionFailureError) as excinfo:
        PdfminerPageExtractor().extract_pages(tmp_path / "x.pdf")
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_get_page_extractor_selects_backend() -> None:
    assert isinstance(get_page_extractor("pypdf2"), PyPDF2PageExtractor)
    assert isinstance(get_page_extractor("pdfminer"), PdfminerPageExtractor)
    with pytest.raises(ValueError):
        get_page_extractor("ocr")
