#!/usr/bin/env python3
"""CLI helper that verifies whether the configured chat-completion relay answers."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--ping",
        action="store_true",
        help="Send a one-line test question to the endpoint instead of only reporting the configuration.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    project_root = Path(__file__).resolve().parents[1]
    env_file = project_root / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=env_file)
    _configure_logging()

    sys.path.insert(0, str(project_root / "src"))

    from pagechat.errors import PageChatError  # noqa: WPS433
    from pagechat.llm_provider import get_llm  # noqa: WPS433
    from pagechat.prompt_builder import SYSTEM_PROMPT  # noqa: WPS433

    args = _parse_args(argv)
    llm = get_llm()
    status = llm.status()
    logging.info(
        "Resolved relay: provider=%s model=%s base_url=%s",
        status.provider,
        status.model_name,
        status.base_url,
    )
    if not status.credential_configured and status.provider != "stub":
        logging.warning("LLM_API_KEY is not configured; the endpoint will most likely reject requests.")

    if not args.ping:
        return 0

    try:
        reply = llm.complete(SYSTEM_PROMPT, "Reply with the single word: ok", 0.0)
    except PageChatError as error:
        logging.error("Relay check failed: %s", error)
        return 1

    if reply is None:
        logging.warning("Endpoint answered without a reply")
        return 1
    logging.info("Endpoint replied: %s", reply.strip()[:80])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
