"""
Configuration validation for the transcript search backend.
Validates SQLite capabilities, source directories and settings on startup.
"""
import sqlite3
from typing import List, Dict, Any


class ConfigValidator:
    """Validates system configuration before the index is built."""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Dict[str, Any]:
        """
        Run all validation checks.

        Returns:
            {
                "valid": bool,
                "errors": List[str],
                "warnings": List[str]
            }
        """
        self.errors = []
        self.warnings = []

        # Run all checks
        self._validate_sqlite_features()
        self._validate_directories()
        self._validate_metadata_source()
        self._validate_config_values()

        return {
            "valid": len(self.errors) == 0,
            "errors": self.errors,
            "warnings": self.warnings
        }

    def _validate_sqlite_features(self):
        """Check that SQLite ships FTS5 with the porter and trigram tokenizers."""
        conn = sqlite3.connect(":memory:")
        try:
            conn.execute("CREATE VIRTUAL TABLE probe_porter USING fts5(t, tokenize='porter')")
        except sqlite3.OperationalError as e:
            self.errors.append(f"SQLite {sqlite3.sqlite_version} lacks FTS5 support: {e}")
            conn.close()
            return

        try:
            conn.execute("CREATE VIRTUAL TABLE probe_trigram USING fts5(t, tokenize='trigram')")
        except sqlite3.OperationalError as e:
            self.errors.append(
                f"SQLite {sqlite3.sqlite_version} lacks the trigram tokenizer "
                f"(3.34+ required): {e}"
            )
        finally:
            conn.close()

    def _validate_directories(self):
        """Check that the transcript directories exist."""
        from core.config import TRANSCRIPTS_DIR, SHOWS_SUBDIR, BEST_OF_SUBDIR

        if not TRANSCRIPTS_DIR.exists():
            self.warnings.append(
                f"Transcripts directory not found at {TRANSCRIPTS_DIR}. "
                "The index will be empty until transcripts are added."
            )
            return

        directories = {
            "Show transcripts directory": TRANSCRIPTS_DIR / SHOWS_SUBDIR,
            "Best-of directory": TRANSCRIPTS_DIR / BEST_OF_SUBDIR,
        }

        for name, path in directories.items():
            if not path.exists():
                self.warnings.append(f"{name} not found at {path}.")

    def _validate_metadata_source(self):
        """Check that the show metadata CSV exists."""
        from core.config import METADATA_CSV_PATH

        if not METADATA_CSV_PATH.exists():
            self.warnings.append(
                f"Metadata CSV not found at {METADATA_CSV_PATH}. "
                "Show links will not be loaded."
            )

    def _validate_config_values(self):
        """Validate configuration value ranges and types."""
        from core.config import (
            SEARCH_PAGE_SIZE,
            INDEX_BATCH_SIZE,
            INDEX_YIELD_EVERY,
            CONTEXT_LINES_AFTER,
            FUZZY_MIN_QUERY_LENGTH,
            SHOW_HOST_PREFIXES,
        )

        positive = {
            "SEARCH_PAGE_SIZE": SEARCH_PAGE_SIZE,
            "INDEX_BATCH_SIZE": INDEX_BATCH_SIZE,
            "INDEX_YIELD_EVERY": INDEX_YIELD_EVERY,
        }
        for name, value in positive.items():
            if value <= 0:
                self.errors.append(f"{name} ({value}) must be > 0")

        if CONTEXT_LINES_AFTER < 0:
            self.errors.append(f"CONTEXT_LINES_AFTER ({CONTEXT_LINES_AFTER}) must be >= 0")

        if FUZZY_MIN_QUERY_LENGTH < 3:
            self.warnings.append(
                f"FUZZY_MIN_QUERY_LENGTH ({FUZZY_MIN_QUERY_LENGTH}) below 3; "
                "trigram matching ignores shorter queries"
            )

        if not SHOW_HOST_PREFIXES:
            self.errors.append("SHOW_HOST_PREFIXES is empty; no show dates could be derived")

# Global validator instance
config_validator = ConfigValidator()
