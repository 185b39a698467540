"""End-to-end API tests — FastAPI app against a per-test SQLite database."""

import pytest

from app.database import build_engine, build_session_factory
from app.main import app
from app.movies.router import get_search_tracker
from app.services.search_tracker import SearchTrackerService


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestSearchEndpoint:
    @pytest.mark.asyncio
    async def test_first_search(self, client):
        resp = await client.post("/api/movies/search", json={
            "searchTerm": "Inception",
            "movieId": "27205",
            "posterUrl": "poster1.jpg",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["searchTerm"] == "Inception"
        assert data["movieId"] == "27205"
        assert data["count"] == 1
        assert data["posterUrl"] == "poster1.jpg"
        assert isinstance(data["id"], int)
        assert data["createdAt"]
        assert data["updatedAt"]

    @pytest.mark.asyncio
    async def test_repeat_search(self, client):
        body = {"searchTerm": "Inception", "movieId": "27205", "posterUrl": "poster1.jpg"}
        await client.post("/api/movies/search", json=body)
        resp = await client.post("/api/movies/search", json={**body, "posterUrl": "poster2.jpg"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 2
        assert data["posterUrl"] == "poster1.jpg"

    @pytest.mark.asyncio
    async def test_null_poster(self, client):
        resp = await client.post("/api/movies/search", json={
            "searchTerm": "Up", "movieId": "14160", "posterUrl": None,
        })
        assert resp.status_code == 200
        assert resp.json()["posterUrl"] is None

    @pytest.mark.asyncio
    async def test_blank_search_term(self, client):
        resp = await client.post("/api/movies/search", json={"searchTerm": "", "movieId": "27205"})
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "Validation failed"
        assert data["fields"] == {"searchTerm": "Search term is required"}

    @pytest.mark.asyncio
    async def test_missing_fields(self, client):
        resp = await client.post("/api/movies/search", json={})
        assert resp.status_code == 400
        assert resp.json()["fields"] == {
            "searchTerm": "Search term is required",
            "movieId": "Movie ID is required",
        }

    @pytest.mark.asyncio
    async def test_null_fields(self, client):
        resp = await client.post("/api/movies/search", json={"searchTerm": None, "movieId": None})
        assert resp.status_code == 400
        assert resp.json()["fields"] == {
            "searchTerm": "Search term is required",
            "movieId": "Movie ID is required",
        }

    @pytest.mark.asyncio
    async def test_search_term_too_long(self, client):
        resp = await client.post("/api/movies/search", json={
            "searchTerm": "x" * 256, "movieId": "27205",
        })
        assert resp.status_code == 400
        assert list(resp.json()["fields"]) == ["searchTerm"]

    @pytest.mark.asyncio
    async def test_movie_id_too_long(self, client):
        resp = await client.post("/api/movies/search", json={
            "searchTerm": "Inception", "movieId": "9" * 256,
        })
        assert resp.status_code == 400
        assert list(resp.json()["fields"]) == ["movieId"]

    @pytest.mark.asyncio
    async def test_search_term_at_limit(self, client):
        resp = await client.post("/api/movies/search", json={
            "searchTerm": "x" * 255, "movieId": "27205",
        })
        assert resp.status_code == 200
        assert resp.json()["count"] == 1

    @pytest.mark.asyncio
    async def test_poster_too_long(self, client):
        resp = await client.post("/api/movies/search", json={
            "searchTerm": "Inception", "movieId": "27205", "posterUrl": "x" * 501,
        })
        assert resp.status_code == 400
        assert "posterUrl" in resp.json()["fields"]

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        resp = await client.post(
            "/api/movies/search",
            content=b"not json",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_validation_never_reaches_store(self, client):
        await client.post("/api/movies/search", json={"searchTerm": " ", "movieId": "1"})
        resp = await client.get("/api/movies/trending")
        assert resp.json() == []


class TestTrendingEndpoint:
    @pytest.mark.asyncio
    async def test_empty(self, client):
        resp = await client.get("/api/movies/trending")
        assert resp.status_code == 200
        assert resp.json() == []

    @pytest.mark.asyncio
    async def test_top_five(self, client):
        searches = {"Alien": 2, "Heat": 5, "Dune": 1, "Up": 4, "Jaws": 3, "Rocky": 6}
        for term, times in searches.items():
            for _ in range(times):
                await client.post("/api/movies/search", json={"searchTerm": term, "movieId": term})

        resp = await client.get("/api/movies/trending")
        assert resp.status_code == 200
        data = resp.json()
        assert [d["searchTerm"] for d in data] == ["Rocky", "Heat", "Up", "Jaws", "Alien"]
        assert [d["count"] for d in data] == [6, 5, 4, 3, 2]


class TestDatabaseFailure:
    @pytest.mark.asyncio
    async def test_store_unavailable_returns_500(self, client, tmp_path):
        broken = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nowhere.db'}")
        app.dependency_overrides[get_search_tracker] = lambda: SearchTrackerService(
            build_session_factory(broken)
        )
        try:
            resp = await client.get("/api/movies/trending")
            assert resp.status_code == 500
            assert "error" in resp.json()

            resp = await client.post("/api/movies/search", json={"searchTerm": "Up", "movieId": "1"})
            assert resp.status_code == 500
        finally:
            await broken.dispose()

    @pytest.mark.asyncio
    async def test_missing_table_returns_500(self, client, tmp_path):
        empty = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        app.dependency_overrides[get_search_tracker] = lambda: SearchTrackerService(
            build_session_factory(empty)
        )
        try:
            resp = await client.get("/api/movies/trending")
            assert resp.status_code == 500
        finally:
            await empty.dispose()
