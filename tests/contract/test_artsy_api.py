"""
Contract tests for the Artsy proxy API and the operational endpoints.

Tests verify:
- Response envelopes and camelCase field names
- The similar-artists endpoint is the only one requiring a session
- Query validation and upstream failure responses
- Health, metrics, correlation IDs and the generic error body
"""

import pytest
from fastapi.testclient import TestClient

from backend.src.errors import UpstreamAuthError

PICASSO = "4d8b92b34eb68a1b2c0003f4"


class TestSearchContract:
    """Test GET /api/artsy/search."""

    def test_search(self, client, gateway):
        response = client.get("/api/artsy/search", params={"q": "picasso"})

        assert response.status_code == 200
        results = response.json()["results"]
        assert len(results) == 1
        assert set(results[0]) == {"id", "title", "imageUrl", "_links"}
        assert results[0]["title"] == "Pablo Picasso"
        assert ("search_artists", "picasso") in gateway.calls

    def test_search_without_query(self, client):
        response = client.get("/api/artsy/search")

        assert response.status_code == 400
        assert response.json() == {"message": "Search query is required"}

    def test_search_blank_query(self, client):
        assert client.get("/api/artsy/search", params={"q": "   "}).status_code == 400

    def test_search_no_matches(self, client):
        assert client.get("/api/artsy/search", params={"q": "zzz"}).json() == {"results": []}

    def test_upstream_auth_failure(self, client, gateway):
        async def fail(query):
            raise UpstreamAuthError()

        gateway.search_artists = fail

        response = client.get("/api/artsy/search", params={"q": "picasso"})

        assert response.status_code == 500
        assert response.json() == {"message": "Server error"}


class TestArtistContract:
    """Test artist detail, similar artists and artworks."""

    def test_artist_detail(self, client):
        response = client.get(f"/api/artsy/artists/{PICASSO}")

        assert response.status_code == 200
        artist = response.json()["artist"]
        assert artist["id"] == PICASSO
        assert artist["biography"] == "Spanish painter"
        assert artist["imageUrl"].endswith("four_thirds.jpg")
        assert "_links" in artist

    def test_artist_detail_upstream_error(self, client):
        response = client.get("/api/artsy/artists/unknown")

        assert response.status_code == 500
        assert response.json() == {"message": "Server error"}

    def test_similar_requires_session(self, client):
        response = client.get(f"/api/artsy/artists/{PICASSO}/similar")

        assert response.status_code == 401
        assert response.json() == {"message": "Authentication required"}

    def test_similar(self, authed_client):
        response = authed_client.get(f"/api/artsy/artists/{PICASSO}/similar")

        assert response.status_code == 200
        similar = response.json()["similarArtists"]
        assert [a["name"] for a in similar] == ["Andy Warhol"]

    def test_artworks(self, client):
        response = client.get(f"/api/artsy/artists/{PICASSO}/artworks")

        assert response.status_code == 200
        artworks = response.json()["artworks"]
        assert artworks[0]["title"] == "Guernica"
        assert artworks[0]["date"] == "1937"

    def test_artworks_empty(self, client):
        assert client.get("/api/artsy/artists/nobody/artworks").json() == {"artworks": []}

    def test_categories(self, client):
        response = client.get("/api/artsy/artworks/516dfb9ab31e2b2270000c45/categories")

        assert response.status_code == 200
        categories = response.json()["categories"]
        assert categories[0]["name"] == "Cubism"
        assert "https://www.artsy.test/artist/pablo-picasso" in categories[0]["description"]

    @pytest.mark.parametrize(
        "path,message",
        [
            ("/api/artsy/artists/pablo.picasso", "Artist ID is invalid"),
            ("/api/artsy/artists/abc%3Fsimilar_to_artist_id%3Dzzz/artworks", "Artist ID is invalid"),
            ("/api/artsy/artworks/a%20b/categories", "Artwork ID is invalid"),
        ],
    )
    def test_malformed_ids_rejected(self, client, gateway, path, message):
        response = client.get(path)

        assert response.status_code == 400
        assert response.json() == {"message": message}
        assert gateway.calls == []


class TestOperationalEndpoints:
    """Test health, metrics and cross-cutting response behaviour."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready_without_database(self, client):
        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["database"] == "unhealthy"

    def test_metrics(self, client):
        client.get("/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_correlation_id_echoed(self, client):
        response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_unknown_route(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {"message": "Not Found"}

    def test_unexpected_error_body(self, app, gateway):
        async def boom(artist_id):
            raise RuntimeError("database exploded")

        gateway.get_artworks_by_artist = boom
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get(f"/api/artsy/artists/{PICASSO}/artworks")

        assert response.status_code == 500
        assert response.json() == {"message": "Something went wrong!"}
