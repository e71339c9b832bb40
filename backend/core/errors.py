"""
Exception types raised by the indexing pipeline and the query engine.

All of them are recoverable: callers catch them locally and degrade
(skip a file, skip a row, return an empty page) instead of failing.
"""
from pathlib import Path
from typing import Optional, Union


class TranscriptSearchError(Exception):
    """Base class for transcript search errors."""
    pass


class SourceReadError(TranscriptSearchError):
    """Raised when a source transcript cannot be read or decoded."""

    def __init__(self, path: Union[str, Path], cause: Optional[Exception] = None):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Cannot read source file {self.path}: {cause}")


class NoSourcesFoundError(TranscriptSearchError):
    """Raised when neither the show nor the best-of tree contains any files."""
    pass


class QuerySyntaxError(TranscriptSearchError):
    """Raised when a match expression cannot be executed by the index."""
    pass


class ContextReadError(TranscriptSearchError):
    """Raised when a hit's source file can no longer be read for context."""
    pass


class MetadataParseError(TranscriptSearchError):
    """Raised for a metadata CSV row that cannot be admitted."""

    def __init__(self, row_number: int, reason: str):
        self.row_number = row_number
        self.reason = reason
        super().__init__(f"Metadata row {row_number}: {reason}")


class IndexNotReadyError(TranscriptSearchError):
    """Raised when a query arrives before the index build has completed."""

    def __init__(self, progress_percent: int):
        self.progress_percent = progress_percent
        super().__init__(f"Index build in progress ({progress_percent}%)")


class IndexFailedError(IndexNotReadyError):
    """Raised when the last index build failed and no usable index exists."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        self.progress_percent = 0
        TranscriptSearchError.__init__(self, f"Index build failed: {reason}")
