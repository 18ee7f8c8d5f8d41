"""Test CORS headers and HTTP caching on the read endpoints."""

ALLOWED_ORIGIN = "https://app.bikesultoursgest.com"
BLOCKED_ORIGIN = "https://evil.example.com"


class TestCaching:
    def test_read_endpoints_are_publicly_cacheable(self, client):
        for path in ("/api/products", "/api/products/101"):
            cache_control = client.get(path).headers["Cache-Control"]
            assert "public" in cache_control
            assert "max-age=300" in cache_control
            assert "stale-while-revalidate=600" in cache_control

    def test_read_endpoints_have_etag(self, client):
        response = client.get("/api/products")
        assert response.headers.get("ETag")

    def test_etag_is_stable_for_unchanged_data(self, client):
        first = client.get("/api/products").headers["ETag"]
        second = client.get("/api/products").headers["ETag"]
        assert first == second

    def test_if_none_match_returns_304(self, client):
        """Test that a matching ETag short-circuits to Not Modified."""
        etag = client.get("/api/products/101").headers["ETag"]

        response = client.get("/api/products/101", headers={"If-None-Match": etag})

        assert response.status_code == 304
        assert response.data == b""

    def test_stale_etag_returns_full_body(self, client):
        response = client.get("/api/products", headers={"If-None-Match": '"stale"'})
        assert response.status_code == 200
        assert response.json["count"] == 3

    def test_etag_changes_with_filter(self, client):
        everything = client.get("/api/products").headers["ETag"]
        bikes = client.get("/api/products?category=bicicletas").headers["ETag"]
        assert everything != bikes


class TestCors:
    def test_allowed_origin_is_echoed(self, client):
        response = client.get("/api/products", headers={"Origin": ALLOWED_ORIGIN})

        assert response.headers["Access-Control-Allow-Origin"] == ALLOWED_ORIGIN
        assert response.headers["Access-Control-Allow-Credentials"] == "true"
        assert "ETag" in response.headers["Access-Control-Expose-Headers"]
        assert "Origin" in response.headers["Vary"]

    def test_unknown_origin_gets_no_cors_headers(self, client):
        """Test that a blocked origin is still served, without CORS headers."""
        response = client.get("/api/products", headers={"Origin": BLOCKED_ORIGIN})

        assert response.status_code == 200
        assert "Access-Control-Allow-Origin" not in response.headers

    def test_no_origin_header(self, client):
        response = client.get("/api/products")
        assert "Access-Control-Allow-Origin" not in response.headers

    def test_preflight(self, client):
        response = client.options(
            "/api/sync",
            headers={
                "Origin": ALLOWED_ORIGIN,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization, Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == ALLOWED_ORIGIN
        assert "POST" in response.headers["Access-Control-Allow-Methods"]
        assert "Authorization" in response.headers["Access-Control-Allow-Headers"]

    def test_preflight_skips_sync_auth(self, client, monkeypatch):
        monkeypatch.setenv("SYNC_USER", "cron")
        monkeypatch.setenv("SYNC_PASS", "s3cret")
        response = client.options("/api/sync", headers={"Origin": ALLOWED_ORIGIN})
        assert response.status_code == 200

    def test_cors_on_errors(self, client):
        response = client.get("/api/products/99999", headers={"Origin": ALLOWED_ORIGIN})
        assert response.status_code == 404
        assert response.headers["Access-Control-Allow-Origin"] == ALLOWED_ORIGIN

    def test_preflight_from_unknown_origin_is_not_allowed(self, client):
        """Test that a preflight from a blocked origin gets no CORS grant."""
        response = client.options(
            "/api/sync",
            headers={
                "Origin": BLOCKED_ORIGIN,
                "Access-Control-Request-Method": "POST",
            },
        )

        assert "Access-Control-Allow-Origin" not in response.headers
        assert "Access-Control-Allow-Methods" not in response.headers

    def test_blocked_origin_is_logged(self, client, caplog):
        with caplog.at_level("WARNING", logger="web.app"):
            client.get("/api/products", headers={"Origin": BLOCKED_ORIGIN})
        assert BLOCKED_ORIGIN in caplog.text
