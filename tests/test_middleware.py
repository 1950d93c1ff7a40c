"""Middleware tests: request IDs, rate limiting, CORS and error rendering."""

from httpx import AsyncClient


async def test_request_id_generated(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 32


async def test_request_id_preserved(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


async def test_rate_limit_headers(client: AsyncClient) -> None:
    response = await client.get("/api/v1/posts")
    assert response.headers["x-ratelimit-limit"] == "100"
    assert response.headers["x-ratelimit-remaining"] == "99"


async def test_rate_limit_blocks_excess(client: AsyncClient) -> None:
    """The 101st request inside one window gets 429 with Retry-After."""
    for _ in range(100):
        await client.get("/api/v1/posts")
    response = await client.get("/api/v1/posts")
    assert response.status_code == 429
    assert "retry-after" in response.headers
    assert "detail" in response.json()


async def test_forwarded_header_does_not_reset_limit(client: AsyncClient) -> None:
    """Without a trusted proxy, X-Forwarded-For is ignored and the socket peer is counted."""
    for i in range(100):
        await client.get("/api/v1/posts", headers={"X-Forwarded-For": f"203.0.113.{i}"})
    response = await client.get("/api/v1/posts", headers={"X-Forwarded-For": "198.51.100.7"})
    assert response.status_code == 429


async def test_health_exempt_from_rate_limit(client: AsyncClient) -> None:
    for _ in range(150):
        response = await client.get("/health")
        assert response.status_code == 200


async def test_cors_preflight(client: AsyncClient) -> None:
    response = await client.options(
        "/api/v1/posts",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


async def test_404_returns_json(client: AsyncClient) -> None:
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.json()["detail"] == "Not Found"


async def test_validation_error_format(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/register", json={"email": "not-an-email", "password": "x"})
    assert response.status_code == 422
    data = response.json()
    assert data["detail"] == "Validation error"
    assert isinstance(data["errors"], list)
    assert data["errors"]
