"""
Smoke tests for scrape history and crawl target endpoints.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestDocumentEndpoints:
    async def test_list_documents_empty(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/documents")
        assert response.status_code == 200
        data = response.json()
        assert data["data"] == []
        assert data["meta"]["count"] == 0

    async def test_list_documents_after_scrape(self, client: AsyncClient, web) -> None:
        web.add_json("https://acme.example/dpp/1", {"@type": "Product", "name": "Drill"})
        await client.post("/api/v1/scrape", json={"url": "https://acme.example/dpp/1"})
        await client.post("/api/v1/scrape", json={"url": "https://acme.example/dpp/2"})

        response = await client.get("/api/v1/documents?limit=5")

        data = response.json()
        assert data["meta"]["count"] == 2
        assert [d["url"] for d in data["data"]] == ["https://acme.example/dpp/2", "https://acme.example/dpp/1"]
        assert "payload" not in data["data"][0]

    async def test_stats(self, client: AsyncClient, web) -> None:
        web.add_json("https://acme.example/dpp/1", {"@type": "Product", "name": "Drill"})
        await client.post("/api/v1/scrape", json={"url": "https://acme.example/dpp/1"})
        await client.post("/api/v1/scrape", json={"url": "https://acme.example/dpp/2"})

        response = await client.get("/api/v1/documents/stats")

        assert response.json()["data"] == {"total": 2, "successful": 1, "failed": 1, "last_24h": 2}

    async def test_get_document_not_found(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/documents/99999")
        assert response.status_code == 404
        assert response.json()["error"]["type"] == "not_found_error"

    async def test_delete_document(self, client: AsyncClient, web) -> None:
        web.add_json("https://acme.example/dpp/1", {"@type": "Product", "name": "Drill"})
        saved = await client.post("/api/v1/scrape", json={"url": "https://acme.example/dpp/1"})
        document_id = saved.json()["data"]["saved_id"]

        deleted = await client.delete(f"/api/v1/documents/{document_id}")
        again = await client.delete(f"/api/v1/documents/{document_id}")

        assert deleted.status_code == 200
        assert again.status_code == 404

    async def test_limit_validated(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/documents?limit=0")
        assert response.status_code == 422


class TestTargetEndpoints:
    async def test_create_and_list(self, client: AsyncClient) -> None:
        created = await client.post(
            "/api/v1/targets",
            json={"name": "Acme", "base_url": "https://acme.example", "notes": "power tools"},
        )
        assert created.status_code == 201
        assert created.json()["data"]["status"] == "active"

        listed = await client.get("/api/v1/targets")
        assert [t["name"] for t in listed.json()["data"]] == ["Acme"]

    async def test_duplicate_target(self, client: AsyncClient) -> None:
        payload = {"name": "Acme", "base_url": "https://acme.example"}
        await client.post("/api/v1/targets", json=payload)

        response = await client.post("/api/v1/targets", json=payload)

        assert response.status_code == 400
        assert response.json()["error"]["details"]["base_url"] == "https://acme.example"

    async def test_scrape_linked_to_target(self, client: AsyncClient, web) -> None:
        await client.post("/api/v1/targets", json={"name": "Acme", "base_url": "https://acme.example"})
        web.add_json("https://acme.example/dpp/1", {"@type": "Product", "name": "Drill"})

        saved = await client.post("/api/v1/scrape", json={"url": "https://acme.example/dpp/1"})
        document = await client.get(f"/api/v1/documents/{saved.json()['data']['saved_id']}")

        assert document.json()["data"]["crawl_target"] == "Acme"
