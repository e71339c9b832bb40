"""
Configuration management for the transcript search backend.
Loads configuration from environment variables and .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in the backend directory or project root
BACKEND_DIR = Path(__file__).parent.parent
PROJECT_ROOT = BACKEND_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

# Load .env file if it exists
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    # Also try loading from backend directory
    backend_env = BACKEND_DIR / ".env"
    if backend_env.exists():
        load_dotenv(backend_env)


def _split_list(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]


# Base paths
# DATA_DIR points at the mounted data volume in production
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))
TRANSCRIPTS_DIR = Path(os.getenv("TRANSCRIPTS_DIR", str(DATA_DIR / "transcripts")))
SHOWS_SUBDIR = os.getenv("SHOWS_SUBDIR", "timestamps")
BEST_OF_SUBDIR = os.getenv("BEST_OF_SUBDIR", "best-of")
DB_PATH = Path(os.getenv("DB_PATH", str(DATA_DIR / "transcripts.db")))
METADATA_CSV_PATH = Path(os.getenv("METADATA_CSV_PATH", str(DATA_DIR / "nrs_shows.csv")))
SCHEMA_FILE = BACKEND_DIR / "db" / "schema.sql"

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
DB_PATH.parent.mkdir(parents=True, exist_ok=True)

# Source file conventions
SHOW_FILE_EXTENSIONS = _split_list(os.getenv("SHOW_FILE_EXTENSIONS", ".txt"))
BEST_OF_FILE_EXTENSIONS = _split_list(os.getenv("BEST_OF_FILE_EXTENSIONS", ".md"))
# Filename token that precedes the 8-digit date, e.g. rogers-19990412.txt
SHOW_HOST_PREFIXES = _split_list(os.getenv("SHOW_HOST_PREFIXES", "rogers,guesthost"))

# Metadata CSV: only rows whose initiator column is in this list are admitted (empty = all)
METADATA_INITIATORS = _split_list(os.getenv("METADATA_INITIATORS", ""))

# Index build settings
# Bump INDEX_VERSION whenever parsing or schema changes so warm starts rebuild
INDEX_VERSION = os.getenv("INDEX_VERSION", "3")
INDEX_BATCH_SIZE = int(os.getenv("INDEX_BATCH_SIZE", "2000"))  # segments per transaction
INDEX_YIELD_EVERY = int(os.getenv("INDEX_YIELD_EVERY", "50"))  # files between event loop yields

# Search settings
SEARCH_PAGE_SIZE = int(os.getenv("SEARCH_PAGE_SIZE", "100"))
CONTEXT_LINES_AFTER = int(os.getenv("CONTEXT_LINES_AFTER", "6"))
FUZZY_MIN_QUERY_LENGTH = int(os.getenv("FUZZY_MIN_QUERY_LENGTH", "3"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# API configuration
API_PREFIX = "/api"
# CORS origins can be comma-separated list in env var
CORS_ORIGINS_STR = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
CORS_ORIGINS = [origin.strip() for origin in CORS_ORIGINS_STR.split(",")]
