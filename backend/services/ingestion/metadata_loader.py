"""
Parses the curated show metadata CSV (dates, video links, hosts, titles).
"""
import csv
import io
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from core.errors import MetadataParseError
from models.transcript_models import ShowLink
from services.processing.utils import is_plausible_url

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

# Documented column order, used when the header does not name a column
POSITIONAL_COLUMNS = ["date", "initiator", "video_url", "notes", "info", "host", "custom_title"]

HEADER_ALIASES = {
    "date": "date",
    "init": "initiator",
    "initiator": "initiator",
    "type": "initiator",
    "youtube": "video_url",
    "youtube url": "video_url",
    "video url": "video_url",
    "url": "video_url",
    "link": "video_url",
    "notes": "notes",
    "info": "info",
    "host": "host",
    "custom title": "custom_title",
    "title": "custom_title",
}


def resolve_columns(header: List[str]) -> Dict[str, int]:
    """
    Map logical field names to column indexes.

    Named header columns win; fields the header does not name fall back
    to their documented position.
    """
    columns: Dict[str, int] = {}
    for index, name in enumerate(header):
        key = HEADER_ALIASES.get(name.strip().strip('"').lower().replace("_", " "))
        if key and key not in columns:
            columns[key] = index

    for index, key in enumerate(POSITIONAL_COLUMNS):
        if key not in columns and index not in columns.values():
            columns[key] = index
    return columns


def _field(row: List[str], columns: Dict[str, int], key: str) -> str:
    index = columns.get(key)
    if index is None or index >= len(row):
        return ""
    return row[index].strip()


def parse_row(
    row: List[str],
    columns: Dict[str, int],
    row_number: int,
    initiators: Optional[Iterable[str]] = None,
) -> ShowLink:
    """
    Convert one CSV row into a ShowLink.

    Raises:
        MetadataParseError: the row has no usable date or URL, or comes from
            an initiator that is not admitted
    """
    date = _field(row, columns, "date")
    if not DATE_PATTERN.match(date):
        raise MetadataParseError(row_number, f"invalid date {date!r}")

    if initiators:
        initiator = _field(row, columns, "initiator")
        if initiator not in set(initiators):
            raise MetadataParseError(row_number, f"initiator {initiator!r} not admitted")

    video_url = _field(row, columns, "video_url")
    if not is_plausible_url(video_url):
        raise MetadataParseError(row_number, "no http(s) video URL")

    return ShowLink(
        date=date,
        video_url=video_url,
        host=_field(row, columns, "host") or None,
        custom_title=_field(row, columns, "custom_title") or None,
    )


def parse_metadata_csv(text: str, initiators: Optional[Iterable[str]] = None) -> List[ShowLink]:
    """
    Parse the metadata CSV text into ShowLink records, in file order.

    The first row is the header. Malformed rows are logged and skipped.
    Duplicate dates are kept; the link table applies last-row-wins.

    Raises:
        MetadataParseError: the header row itself cannot be parsed
    """
    reader = csv.reader(io.StringIO(text))
    try:
        header = next(reader, None)
    except csv.Error as e:
        raise MetadataParseError(1, f"unparseable header: {e}") from e
    if header is None:
        return []

    columns = resolve_columns(header)
    links = []
    skipped = 0
    row_number = 1
    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            skipped += 1
            logger.warning(f"Skipping unparseable metadata record near line {reader.line_num}: {e}")
            continue
        row_number += 1
        if not any(cell.strip() for cell in row):
            continue
        try:
            links.append(parse_row(row, columns, row_number, initiators))
        except MetadataParseError as e:
            skipped += 1
            logger.debug(f"Skipping {e}")

    if skipped:
        logger.warning(f"Skipped {skipped} metadata rows without a usable date or link")
    return links


def load_metadata_file(
    path: Union[str, Path],
    initiators: Optional[Iterable[str]] = None,
) -> Optional[List[ShowLink]]:
    """
    Read and parse the metadata CSV.

    Bytes that are not valid UTF-8 are replaced, so one stray character
    costs at most its own field.

    Returns:
        Links in file order, or None when the file is missing, unreadable
        or has no parseable header
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Metadata CSV not found at {path}, leaving show links unchanged")
        return None

    try:
        raw = path.read_bytes()
    except OSError as e:
        logger.warning(f"Cannot read metadata CSV {path}: {e}")
        return None

    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        logger.warning(f"Metadata CSV {path} is not valid UTF-8 ({e}), replacing bad bytes")
        text = raw.decode("utf-8-sig", errors="replace")

    try:
        return parse_metadata_csv(text, initiators)
    except MetadataParseError as e:
        logger.warning(f"Cannot parse metadata CSV {path}: {e}")
        return None
