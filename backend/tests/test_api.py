"""
HTTP surface tests with the search engine swapped for a mock or a test instance.
"""
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from api.main import app
from core.errors import IndexFailedError, IndexNotReadyError
from models.search_models import SearchHit
from models.transcript_models import BuildStatus, ContentType
from corpus_data import SHOW_20010301


@pytest.fixture
def client():
    # No context manager: startup hooks (validation, background build) stay off
    return TestClient(app)


@pytest.fixture
def mock_engine():
    with patch("api.routes.search.search_engine") as engine:
        yield engine


class TestStatus:
    """Test /api/status."""

    def test_in_progress(self, client, mock_engine):
        mock_engine.build_status.return_value = BuildStatus(
            in_progress=True, processed_files=1, total_files=4
        )

        response = client.get("/api/status")

        assert response.status_code == 200
        assert response.json() == {
            "ready": False,
            "progress": 25,
            "total_files": 4,
            "processed_files": 1,
            "failed": False,
        }


class TestSearchRoute:
    """Test /api/search."""

    def test_not_ready_returns_503(self, client, mock_engine):
        mock_engine.search.side_effect = IndexNotReadyError(42)

        response = client.get("/api/search", params={"q": "Rick"})

        assert response.status_code == 503
        assert response.json() == {"error": "Indexing", "progress": 42}

    def test_failed_build_is_not_reported_as_indexing(self, client, mock_engine):
        mock_engine.search.side_effect = IndexFailedError("disk on fire")

        response = client.get("/api/search", params={"q": "Rick"})

        assert response.status_code == 503
        assert response.json() == {"error": "Not indexed", "progress": 0}

    def test_offset_beyond_integer_range_rejected(self, client, mock_engine):
        response = client.get("/api/search", params={"q": "x", "offset": 2 ** 64})

        assert response.status_code == 422
        mock_engine.search.assert_not_called()

    def test_parameters_reach_engine(self, client, mock_engine):
        mock_engine.search.return_value = []

        response = client.get(
            "/api/search",
            params={"q": "Rick AND Suds", "years": "1999, 2000,", "type": "best_of", "offset": 100},
        )

        assert response.status_code == 200
        assert response.json() == []
        query, options = mock_engine.search.call_args[0]
        assert query == "Rick AND Suds"
        assert options.years == ["1999", "2000"]
        assert options.content_type == ContentType.BEST_OF
        assert options.offset == 100

    def test_hit_serialization(self, client, mock_engine):
        mock_engine.search.return_value = [
            SearchHit(
                id="timestamps/a.txt::4",
                file="timestamps/a.txt",
                line=4,
                date="1999-04-12",
                content_type="show",
                text_content="Jorge is on line one",
                highlight="<b>Jorge</b> is on line one",
                snippet="Jorge is on line one\nnext line",
                video_url="https://youtu.be/aaa",
                host="Neil",
            )
        ]

        body = client.get("/api/search", params={"q": "jorge"}).json()

        assert body[0]["youtube_url"] == "https://youtu.be/aaa"
        assert body[0]["host"] == "Neil"
        assert body[0]["line"] == 4
        assert body[0]["fuzzy"] is False

    def test_invalid_type_rejected(self, client, mock_engine):
        response = client.get("/api/search", params={"q": "x", "type": "movies"})
        assert response.status_code == 422

    def test_negative_offset_rejected(self, client, mock_engine):
        response = client.get("/api/search", params={"q": "x", "offset": -1})
        assert response.status_code == 422


class TestEpisodesRoute:
    """Test /api/episodes."""

    def test_all_types(self, client, mock_engine):
        mock_engine.list_episodes.return_value = [{
            "date": "1999-12-31",
            "file": "best-of/1999 Best Of.md",
            "content_type": "best_of",
            "video_url": "https://www.youtube.com/watch?v=bestof1999",
            "host": None,
            "custom_title": "Best of 1999",
        }]

        response = client.get("/api/episodes", params={"type": "all", "years": "1999"})

        assert response.status_code == 200
        assert response.json()[0]["custom_title"] == "Best of 1999"
        mock_engine.list_episodes.assert_called_once_with(["1999"], None)

    def test_unknown_type(self, client, mock_engine):
        assert client.get("/api/episodes", params={"type": "movies"}).status_code == 422

    def test_not_ready(self, client, mock_engine):
        mock_engine.list_episodes.side_effect = IndexNotReadyError(0)
        assert client.get("/api/episodes").status_code == 503


class TestTranscriptRoute:
    """Test /api/transcript against a real engine."""

    def test_missing_param(self, client):
        assert client.get("/api/transcript").status_code == 400

    def test_serves_raw_text(self, client, engine):
        with patch("api.routes.search.search_engine", engine):
            response = client.get(
                "/api/transcript", params={"file": "timestamps/2001/rogers-20010301.txt"}
            )

        assert response.status_code == 200
        assert response.text == SHOW_20010301
        assert response.headers["content-type"].startswith("text/plain")

    def test_not_found(self, client, engine):
        with patch("api.routes.search.search_engine", engine):
            assert client.get("/api/transcript", params={"file": "nope.txt"}).status_code == 404
            assert client.get("/api/transcript", params={"file": "../shows.csv"}).status_code == 404


class TestLinkRefreshRoute:
    """Test POST /api/links/refresh."""

    def test_reports_count(self, client, mock_engine):
        mock_engine.builder = MagicMock()
        mock_engine.builder.refresh_links.return_value = 2

        response = client.post("/api/links/refresh")

        assert response.status_code == 200
        assert response.json() == {"links": 2}


class TestHealth:
    """Test the unversioned endpoints."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_root(self, client):
        assert client.get("/").json()["version"] == "1.0.0"
