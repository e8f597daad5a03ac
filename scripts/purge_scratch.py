#!/usr/bin/env python3
"""CLI helper that removes uploaded documents older than a given age."""

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
        "--max-age-hours",
        type=float,
        default=24.0,
        help="Discard documents uploaded more than this many hours ago (default: 24).",
    )
    parser.add_argument(
        "--scratch-dir",
        type=Path,
        default=None,
        help="Override the SCRATCH_DIR setting.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    project_root = Path(__file__).resolve().parents[1]
    env_file = project_root / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=env_file)
    _configure_logging()

    sys.path.insert(0, str(project_root / "src"))

    from pagechat.config import get_settings  # noqa: WPS433
    from pagechat.storage import DocumentStore  # noqa: WPS433
    from pagechat.telemetry import emit_purge_event  # noqa: WPS433

    args = _parse_args(argv)
    if args.max_age_hours < 0:
        logging.error("--max-age-hours must not be negative")
        return 2

    scratch_dir = args.scratch_dir or get_settings().scratch_dir
    max_age_seconds = args.max_age_hours * 3600.0
    logging.info("Purging documents older than %.1fh from %s", args.max_age_hours, scratch_dir)

    purged = DocumentStore(scratch_dir).purge_older_than(max_age_seconds)
    emit_purge_event(purged=purged, max_age_seconds=max_age_seconds)
    logging.info("Purged %d document(s)", len(purged))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
