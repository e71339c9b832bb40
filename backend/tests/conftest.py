"""
Shared fixtures: a small transcript corpus, metadata CSV and a built index.
"""
import os
import tempfile
from pathlib import Path

# Keep the module-level database out of the working tree
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="transcript-search-"))

import pytest

from core.database import Database
from core.index_builder import IndexBuilder
from services.search.search_engine import SearchEngine
from corpus_data import METADATA_CSV, run_build, write_corpus


@pytest.fixture
def corpus(tmp_path) -> Path:
    return write_corpus(tmp_path / "transcripts")


@pytest.fixture
def metadata_csv(tmp_path) -> Path:
    path = tmp_path / "shows.csv"
    path.write_text(METADATA_CSV, encoding="utf-8")
    return path


@pytest.fixture
def database(tmp_path) -> Database:
    return Database(tmp_path / "test.db")


@pytest.fixture
def builder(database, corpus, metadata_csv) -> IndexBuilder:
    return IndexBuilder(
        database=database,
        transcripts_dir=corpus,
        metadata_csv=metadata_csv,
        version="test-1",
        batch_size=3,
        yield_every=2,
        metadata_initiators=[],
    )


@pytest.fixture
def built_builder(builder) -> IndexBuilder:
    run_build(builder)
    return builder


@pytest.fixture
def engine(database, built_builder, corpus) -> SearchEngine:
    return SearchEngine(database=database, builder=built_builder, transcripts_dir=corpus)
