"""Environment-driven settings for the service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from pagechat.ingest.normalization import (
    DEFAULT_FOOTER_PATTERNS,
    DEFAULT_FOOTER_SUBSTRINGS,
    LineCleaningOptions,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_LLM_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_LLM_MODEL = "llama-3.1-8b-instant"

PDF_TEXT_BACKENDS = ("pypdf2", "pdfminer")
IMAGE_EXTRACTION_MODES = ("auto", "enabled", "disabled")


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _float_from_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


def _choice_from_env(name: str, choices: Tuple[str, ...], default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate not in choices:
        LOGGER.warning(
            "Invalid value for %s: %s (expected one of %s); using default %s",
            name,
            value,
            ", ".join(choices),
            default,
        )
        return default
    return candidate


def _list_from_env(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    return tuple(item.strip() for item in value.split("|") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read-only after startup."""

    scratch_dir: Path = Path("tmp")
    log_dir: Path = Path("logs")
    llm_api_key: Optional[str] = None
    llm_base_url: str = DEFAULT_LLM_BASE_URL
    llm_model: str = DEFAULT_LLM_MODEL
    llm_temperature: float = 0.2
    llm_timeout_seconds: float = 30.0
    llm_stub: bool = False
    pdf_text_backend: str = "pypdf2"
    image_extraction: str = "auto"
    image_extraction_timeout_seconds: float = 60.0
    line_cleaning: LineCleaningOptions = field(default_factory=LineCleaningOptions)


def load_settings() -> Settings:
    """Build :class:`Settings` from the environment (and ``.env`` when present)."""

    load_dotenv()

    api_key = os.getenv("LLM_API_KEY") or os.getenv("API_KEY")
    return Settings(
        scratch_dir=Path(os.getenv("SCRATCH_DIR", "tmp")),
        log_dir=Path(os.getenv("LOG_DIR", "logs")),
        llm_api_key=api_key.strip() if api_key else None,
        llm_base_url=os.getenv("LLM_BASE_URL", DEFAULT_LLM_BASE_URL).rstrip("/"),
        llm_model=os.getenv("LLM_MODEL", DEFAULT_LLM_MODEL),
        llm_temperature=_float_from_env("LLM_TEMPERATURE", 0.2),
        llm_timeout_seconds=_float_from_env("LLM_TIMEOUT_SECONDS", 30.0),
        llm_stub=_env_flag("LLM_STUB"),
        pdf_text_backend=_choice_from_env("PDF_TEXT_BACKEND", PDF_TEXT_BACKENDS, "pypdf2"),
        image_extraction=_choice_from_env("IMAGE_EXTRACTION", IMAGE_EXTRACTION_MODES, "auto"),
        image_extraction_timeout_seconds=_float_from_env("IMAGE_EXTRACTION_TIMEOUT_SECONDS", 60.0),
        line_cleaning=LineCleaningOptions(
            footer_substrings=_list_from_env("FOOTER_SUBSTRINGS", DEFAULT_FOOTER_SUBSTRINGS),
            footer_patterns=_list_from_env("FOOTER_PATTERNS", DEFAULT_FOOTER_PATTERNS),
            strip_bare_page_numbers=_env_flag("STRIP_BARE_PAGE_NUMBERS", default=True),
        ),
    )


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the lazily loaded process settings."""

    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = load_settings()
    return _SETTINGS


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""

    global _SETTINGS
    _SETTINGS = None


__all__ = ["Settings", "get_settings", "load_settings", "reset_settings"]
