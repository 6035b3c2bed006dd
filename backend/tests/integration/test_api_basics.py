"""Integration tests for health, subjects and cross-cutting middleware."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestHealth:
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_health_db(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health/db")
        assert response.json()["database"] == "connected"


class TestSubjects:
    async def test_list_and_get(self, async_client: AsyncClient, subject):
        listing = (await async_client.get("/api/v1/subjects")).json()
        assert listing["total"] == 1
        assert listing["items"][0]["code"] == "CS101"

        response = await async_client.get(f"/api/v1/subjects/{subject.id}")
        assert response.json()["slug"] == "data-structures"

    async def test_unknown_subject(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/v1/subjects/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


class TestMiddleware:
    async def test_request_id_generated(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health")
        assert len(response.headers["x-request-id"]) == 36

    async def test_valid_request_id_echoed(self, async_client: AsyncClient):
        request_id = str(uuid4())
        response = await async_client.get("/api/v1/health", headers={"X-Request-ID": request_id})
        assert response.headers["x-request-id"] == request_id

    async def test_invalid_request_id_replaced(self, async_client: AsyncClient):
        response = await async_client.get(
            "/api/v1/health", headers={"X-Request-ID": "not-a-uuid"}
        )
        assert response.headers["x-request-id"] != "not-a-uuid"

    async def test_security_headers(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health")
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"

    async def test_unknown_route(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/nope")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_oversized_body_rejected(self, async_client: AsyncClient, contributor_headers: dict):
        response = await async_client.post(
            "/api/v1/topics",
            content=b"x",
            headers={**contributor_headers, "Content-Length": str(6 * 1024 * 1024)},
        )
        assert response.status_code == 413
