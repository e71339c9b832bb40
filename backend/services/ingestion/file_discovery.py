"""
Enumerates show transcripts and best-of compilations under the transcripts root.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from core.config import (
    BEST_OF_FILE_EXTENSIONS,
    BEST_OF_SUBDIR,
    SHOW_FILE_EXTENSIONS,
    SHOWS_SUBDIR,
)
from core.errors import NoSourcesFoundError
from models.transcript_models import ContentType

logger = logging.getLogger(__name__)


@dataclass
class SourceFile:
    """A file to be parsed, with its path relative to the transcripts root."""
    path: Path
    relative_path: str
    content_type: ContentType


def _collect(root: Path, subdir: str, extensions: Sequence[str], content_type: ContentType) -> List[SourceFile]:
    base = root / subdir
    if not base.is_dir():
        logger.warning(f"Source directory not found: {base}")
        return []

    suffixes = {ext.lower() for ext in extensions}
    files = []
    for path in sorted(base.rglob("*")):
        if path.is_file() and path.suffix.lower() in suffixes:
            files.append(SourceFile(
                path=path,
                relative_path=path.relative_to(root).as_posix(),
                content_type=content_type,
            ))
    return files


def discover_sources(
    root: Path,
    shows_subdir: str = SHOWS_SUBDIR,
    best_of_subdir: str = BEST_OF_SUBDIR,
) -> List[SourceFile]:
    """
    List every show and best-of file under ``root``.

    Raises:
        NoSourcesFoundError: neither subtree contains a matching file
    """
    root = Path(root)
    shows = _collect(root, shows_subdir, SHOW_FILE_EXTENSIONS, ContentType.SHOW)
    best_of = _collect(root, best_of_subdir, BEST_OF_FILE_EXTENSIONS, ContentType.BEST_OF)

    if not shows and not best_of:
        raise NoSourcesFoundError(
            f"No transcripts found under {root / shows_subdir} or {root / best_of_subdir}"
        )

    logger.info(f"Found {len(shows)} show transcripts and {len(best_of)} best-of files")
    return shows + best_of
