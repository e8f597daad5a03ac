"""Structured lifecycle events emitted through the standard logging tree."""

from __future__ import annotations

import logging
import os
import platform
import socket
import subprocess
import sys
import traceback
from pathlib import Path
from typing import Any, Iterable, Optional


LOGGER = logging.getLogger("pagechat.telemetry")

_ENV_KEYS_TO_LOG: tuple[str, ...] = (
    "SCRATCH_DIR",
    "LOG_DIR",
    "LLM_BASE_URL",
    "LLM_MODEL",
    "LLM_TEMPERATURE",
    "LLM_TIMEOUT_SECONDS",
    "LLM_STUB",
    "PDF_TEXT_BACKEND",
    "IMAGE_EXTRACTION",
    "IMAGE_EXTRACTION_TIMEOUT_SECONDS",
    "STRIP_BARE_PAGE_NUMBERS",
)


def _run_command(command: list[str], *, timeout: float = 5.0) -> tuple[int, str, str]:
    try:
        completed = subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError) as error:  # pragma: no cover - depends on runtime
        return 1, "", str(error)
    return completed.returncode, completed.stdout.strip(), completed.stderr.strip()


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    req_id: str | None = None,
    document_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    extra: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if req_id:
        event["req_id"] = req_id
    if document_id:
        event["document_id"] = document_id
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    if extra:
        event.update(extra)
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_app_startup_event(*, image_extractor: str, text_backend: str) -> None:
    env_values = {key: os.getenv(key) for key in _ENV_KEYS_TO_LOG if os.getenv(key) is not None}
    details = {
        "env": env_values,
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "image_extractor": image_extractor,
        "text_backend": text_backend,
    }
    payload = {
        "commit": _resolve_git_commit(),
        "pid": os.getpid(),
        "hostname": socket.gethostname(),
        "cwd": str(Path.cwd()),
    }
    log_event(LOGGER, "app.startup", details=details, extra=payload)


def emit_ingest_event(
    step: str,
    *,
    document_id: str,
    size_bytes: int | None = None,
    duration_ms: float | None = None,
    pages: int | None = None,
    images: int | None = None,
    backend: str | None = None,
) -> None:
    details = {
        "size_bytes": size_bytes,
        "pages": pages,
        "images": images,
        "backend": backend,
    }
    log_event(LOGGER, step, document_id=document_id, duration_ms=duration_ms, details=details)


def emit_lookup_event(
    *,
    document_id: str,
    requested_page: Any,
    resolved_page: int | None,
    page_count: int | None,
    found: bool,
) -> None:
    details = {
        "requested_page": repr(requested_page),
        "resolved_page": resolved_page,
        "page_count": page_count,
        "found": found,
    }
    log_event(LOGGER, "lookup.page", document_id=document_id, details=details)


def emit_prompt_event(*, document_id: str, template: str, page_label: str, context_chars: int) -> None:
    details = {
        "template": template,
        "page_label": page_label,
        "context_chars": context_chars,
    }
    log_event(LOGGER, "prompt.compose", document_id=document_id, details=details)


def emit_inference_request(
    *,
    req_id: str,
    document_id: str,
    model: str,
    prompt_preview: str,
    prompt_len: int,
    temperature: float,
) -> None:
    details = {
        "model": model,
        "prompt_preview": prompt_preview[:120],
        "prompt_len": prompt_len,
        "temperature": temperature,
    }
    log_event(LOGGER, "inference.request", req_id=req_id, document_id=document_id, details=details)


def emit_inference_result(
    *,
    req_id: str,
    document_id: str,
    duration_ms: float,
    model_used: str,
    answer_preview: str,
    fallback: bool,
) -> None:
    details = {
        "model_used": model_used,
        "answer_preview": answer_preview[:120],
        "fallback": fallback,
    }
    log_event(
        LOGGER,
        "inference.result",
        req_id=req_id,
        document_id=document_id,
        duration_ms=duration_ms,
        details=details,
    )


def emit_exception(
    *,
    module: str,
    error: BaseException,
    req_id: str | None = None,
    document_id: str | None = None,
    suggestion: str | None = None,
) -> None:
    details = {"module": module}
    if suggestion:
        details["suggestion"] = suggestion
    log_event(
        LOGGER,
        "exception",
        level="error",
        req_id=req_id,
        document_id=document_id,
        details=details,
        exc=error,
    )


def emit_purge_event(*, purged: Iterable[str], max_age_seconds: float) -> None:
    purged_ids = list(purged)
    details = {"count": len(purged_ids), "ids": purged_ids, "max_age_seconds": max_age_seconds}
    log_event(LOGGER, "storage.purge", details=details)


def _resolve_git_commit() -> Optional[str]:
    returncode, stdout, _ = _run_command(["git", "rev-parse", "HEAD"])
    if returncode != 0:
        return None
    return stdout.strip() or None


__all__ = [
    "emit_app_startup_event",
    "emit_exception",
    "emit_inference_request",
    "emit_inference_result",
    "emit_ingest_event",
    "emit_lookup_event",
    "emit_prompt_event",
    "emit_purge_event",
    "log_event",
]
