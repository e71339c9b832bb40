"""
Transcript parsing: turns show transcripts and best-of compilations into segments.
"""
import re
from datetime import date as Date
from pathlib import Path
from typing import List, Optional, Sequence, Union

from core.config import SHOW_HOST_PREFIXES
from models.transcript_models import (
    ContentType,
    Episode,
    ParsedSource,
    Segment,
    UNKNOWN_DATE,
)
from services.processing.utils import clean_text, extract_url, read_text_file, split_lines

# [00:01:02.500 --> 00:01:07.000] optional text on the same line
_TIME = r'\d{1,2}:\d{2}(?::\d{2})?(?:[.,]\d{1,3})?'
SHOW_MARKER_PATTERN = re.compile(rf'^\[\s*{_TIME}\s*-->\s*{_TIME}\s*\](.*)$')

# 1:23 text, 12:34 text, 1:02:03 text
BEST_OF_LINE_PATTERN = re.compile(r'^\d{1,2}:\d{2}(?::\d{2})?\s+\S')
SEPARATOR_PATTERN = re.compile(r'^(?:-{3,}|\*{3,}|_{3,})$')
BEST_OF_YEAR_PATTERN = re.compile(r'^(\d{4})')

# Best-of compilations are pinned to the last day of their year
BEST_OF_DAY = "12-31"


def date_from_show_filename(filename: str, prefixes: Sequence[str] = SHOW_HOST_PREFIXES) -> str:
    """
    Derive the ISO date of a show from its filename.

    The filename must carry an 8-digit YYYYMMDD date right after one of the
    host prefixes (``rogers-19990412.txt``). Anything else, including digits
    that do not form a real calendar date, yields UNKNOWN_DATE.
    """
    if not prefixes:
        return UNKNOWN_DATE
    alternatives = "|".join(re.escape(p) for p in prefixes)
    match = re.search(rf'(?:{alternatives})[-_ ]?(\d{{8}})', filename, re.IGNORECASE)
    if not match:
        return UNKNOWN_DATE

    digits = match.group(1)
    try:
        parsed = Date(int(digits[:4]), int(digits[4:6]), int(digits[6:8]))
    except ValueError:
        return UNKNOWN_DATE
    return parsed.isoformat()


def date_from_best_of_filename(filename: str) -> str:
    """Leading 4-digit year of a best-of file, pinned to BEST_OF_DAY."""
    match = BEST_OF_YEAR_PATTERN.match(filename)
    if not match:
        return UNKNOWN_DATE
    return f"{match.group(1)}-{BEST_OF_DAY}"


def parse_show_lines(lines: List[str], relative_path: str, date: str) -> List[Segment]:
    """
    Split show transcript lines into segments.

    A segment starts at every timestamp-range marker and collects the
    non-blank lines that follow it until the next marker.
    """
    segments = []
    current_offset: Optional[int] = None
    current_text: List[str] = []

    def close_segment():
        if current_offset is None:
            return
        text = " ".join(current_text).strip()
        if text:
            segments.append(Segment(
                file=relative_path,
                line_offset=current_offset,
                date=date,
                text_content=text,
                content_type=ContentType.SHOW,
            ))

    for index, raw_line in enumerate(lines):
        line = raw_line.strip()
        if not line:
            continue

        marker = SHOW_MARKER_PATTERN.match(line)
        if marker:
            close_segment()
            current_offset = index
            trailing = marker.group(1).strip()
            current_text = [trailing] if trailing else []
            continue

        # Preamble before the first marker is not indexed
        if current_offset is not None:
            current_text.append(line)

    close_segment()
    return segments


def parse_show_file(path: Union[str, Path], relative_path: str) -> ParsedSource:
    """Parse one daily show transcript."""
    content = read_text_file(path)
    date = date_from_show_filename(Path(path).name)
    segments = parse_show_lines(split_lines(content), relative_path, date)
    episode = Episode(date=date, file=relative_path, content_type=ContentType.SHOW)
    return ParsedSource(episode=episode, segments=segments)


def _clean_title(line: str) -> Optional[str]:
    title = clean_text(line.lstrip("#"))
    return title or None


def parse_best_of_lines(lines: List[str], relative_path: str, date: str) -> ParsedSource:
    """
    Parse a best-of compilation.

    Line 0 is the custom title and line 1 the video link. From line 2 on,
    each line that opens with a clock timestamp is kept verbatim as one
    segment; blank and separator lines are skipped.
    """
    title = _clean_title(lines[0]) if lines else None
    video_url = extract_url(lines[1]) if len(lines) > 1 else None

    segments = []
    for index in range(2, len(lines)):
        line = lines[index].strip()
        if not line or SEPARATOR_PATTERN.match(line):
            continue
        if BEST_OF_LINE_PATTERN.match(line):
            segments.append(Segment(
                file=relative_path,
                line_offset=index,
                date=date,
                text_content=line,
                content_type=ContentType.BEST_OF,
            ))

    episode = Episode(
        date=date,
        file=relative_path,
        content_type=ContentType.BEST_OF,
        video_url=video_url,
        custom_title=title,
    )
    return ParsedSource(episode=episode, segments=segments)


def parse_best_of_file(path: Union[str, Path], relative_path: str) -> ParsedSource:
    """Parse one best-of markdown file."""
    content = read_text_file(path)
    date = date_from_best_of_filename(Path(path).name)
    return parse_best_of_lines(split_lines(content), relative_path, date)


def parse_source_file(
    path: Union[str, Path],
    relative_path: str,
    content_type: ContentType,
) -> ParsedSource:
    """
    Parse a source file of either kind.

    Raises:
        SourceReadError: the file could not be read or is not valid UTF-8
    """
    if content_type == ContentType.BEST_OF:
        return parse_best_of_file(path, relative_path)
    return parse_show_file(path, relative_path)
