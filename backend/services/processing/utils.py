"""
Shared utilities for the parsing and search pipeline.
"""
import re
from pathlib import Path
from typing import List, Optional, Union

from core.errors import SourceReadError

URL_PATTERN = re.compile(r'https?://[^\s<>()\[\]"\']+')


def read_text_file(path: Union[str, Path]) -> str:
    """Read a source file as UTF-8, raising SourceReadError on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(path, e) from e


def split_lines(content: str) -> List[str]:
    """Split file content into lines, tolerating CRLF endings."""
    return content.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def clean_text(text: str) -> str:
    """
    Normalize whitespace.

    Runs of whitespace collapse to a single space; leading and
    trailing whitespace is removed.
    """
    return re.sub(r'\s+', ' ', text).strip()


def extract_url(line: str) -> Optional[str]:
    """Return the first http(s) URL on a line, or None."""
    match = URL_PATTERN.search(line or "")
    if not match:
        return None
    return match.group(0).rstrip(".,;")


def is_plausible_url(value: Optional[str]) -> bool:
    return bool(value) and value.lower().startswith(("http://", "https://"))


def context_window(lines: List[str], start: int, lines_after: int) -> str:
    """Lines start..start+lines_after (inclusive), clamped to the file."""
    if not lines:
        return ""
    first = max(0, min(start, len(lines) - 1))
    last = min(len(lines) - 1, first + lines_after)
    return "\n".join(lines[first:last + 1])

