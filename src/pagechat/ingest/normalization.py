"""Line cleaning for extracted page text."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

# Footer furniture repeated on every slide of the lecture decks this service
# was first deployed against.
DEFAULT_FOOTER_SUBSTRINGS: Tuple[str, ...] = (
    "All rights reserved",
    "Confidential - do not distribute",
    "Copyright ©",
)
DEFAULT_FOOTER_PATTERNS: Tuple[str, ...] = (
    r"^Page \d+( of \d+)?$",
    r"^Slide \d+$",
    r"^\d+\s*/\s*\d+$",
)

_BARE_PAGE_NUMBER_RE = re.compile(r"^\d+$")
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class LineCleaningOptions:
    """Suppression rules applied to every cleaned line."""

    footer_substrings: Tuple[str, ...] = DEFAULT_FOOTER_SUBSTRINGS
    footer_patterns: Tuple[str, ...] = DEFAULT_FOOTER_PATTERNS
    strip_bare_page_numbers: bool = True

    def compiled_patterns(self) -> List[re.Pattern[str]]:
        return [re.compile(pattern) for pattern in self.footer_patterns]


DEFAULT_LINE_CLEANING = LineCleaningOptions()


def clean_lines(raw_text: str, options: Optional[LineCleaningOptions] = None) -> List[str]:
    """Split page text into trimmed, non-empty lines with footers removed.

    Lines keep their original order and are never merged, so feeding the
    result back in (joined with newlines) returns the same list.
    """

    options = options or DEFAULT_LINE_CLEANING
    patterns = options.compiled_patterns()

    cleaned: List[str] = []
    for line in _LINE_BREAK_RE.split(raw_text or ""):
        line = line.strip()
        if not line:
            continue
        if any(fragment and fragment in line for fragment in options.footer_substrings):
            continue
        if any(pattern.search(line) for pattern in patterns):
            continue
        if options.strip_bare_page_numbers and _BARE_PAGE_NUMBER_RE.match(line):
            continue
        cleaned.append(line)
    return cleaned


__all__ = [
    "DEFAULT_FOOTER_PATTERNS",
    "DEFAULT_FOOTER_SUBSTRINGS",
    "DEFAULT_LINE_CLEANING",
    "LineCleaningOptions",
    "clean_lines",
]
