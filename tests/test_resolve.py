"""
Smoke tests for resolution endpoints.

Outbound requests are answered by the ``web`` fixture.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

PASSPORT_URL = "https://acme.example/dpp/1"
PASSPORT = {
    "@context": "https://schema.org",
    "@id": PASSPORT_URL,
    "@type": "Product",
    "name": "Drill",
    "manufacturer": {"@id": "https://acme.example/org"},
}
ORGANIZATION = {"@id": "https://acme.example/org", "@type": "Organization", "name": "ACME"}


class TestResolveEndpoint:
    async def test_resolve_success(self, client: AsyncClient, web) -> None:
        web.add_json(PASSPORT_URL, PASSPORT)

        response = await client.post("/api/v1/resolve", json={"identifier": PASSPORT_URL})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["data"] == PASSPORT
        assert body["data"]["strategy_used"] == "accept_ld_json"
        assert body["data"]["analysis"]["format"] == "JSON-LD (Schema.org)"

    async def test_resolve_did_document_lists_service_endpoints(self, client: AsyncClient, web) -> None:
        did_url = "https://acme.example/id/did.json"
        web.add_json(did_url, {
            "id": "did:web:acme.example:id",
            "service": [{"id": "#dpp", "type": "DPP", "serviceEndpoint": "https://acme.example/dpp"}],
        })

        response = await client.post("/api/v1/resolve", json={"identifier": did_url})

        analysis = response.json()["data"]["analysis"]
        assert analysis["service_endpoints"] == [
            {"id": "#dpp", "type": "DPP", "endpoint": "https://acme.example/dpp"},
        ]

    async def test_resolve_failure_lists_attempts(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/resolve", json={"identifier": "https://acme.example/missing"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert "404" in body["data"]["error"]
        assert len(body["data"]["attempts"]) > 1

    async def test_resolve_unsupported_scheme(self, client: AsyncClient, web) -> None:
        response = await client.post("/api/v1/resolve", json={"identifier": "urn:uuid:42"})

        body = response.json()
        assert body["success"] is False
        assert body["data"]["attempts"][0]["error_kind"] == "scheme"
        assert web.requests == []

    async def test_resolve_validation_error(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/resolve", json={"identifier": ""})

        assert response.status_code == 422
        assert response.json()["error"]["type"] == "validation_error"

    async def test_resolve_blank_identifier(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/resolve", json={"identifier": "   "})

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "invalid_input_error"


class TestExpandEndpoint:
    async def test_expand_inline_root(self, client: AsyncClient, web) -> None:
        web.add_json("https://acme.example/org", ORGANIZATION)

        response = await client.post(
            "/api/v1/expand",
            json={"root": PASSPORT, "max_depth": 2, "include_structure": True, "merge": True},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        entry = data["links"]["https://acme.example/org"]
        assert entry["status"] == "resolved"
        assert entry["depth"] == 1
        assert data["stats"]["resolved"] == 1
        assert data["cancelled"] is False
        assert {n["id"] for n in data["structure"]["nodes"]} == {PASSPORT_URL, "https://acme.example/org"}
        assert data["merged"]["manufacturer"]["name"] == "ACME"

    async def test_expand_by_identifier(self, client: AsyncClient, web) -> None:
        web.add_json(PASSPORT_URL, PASSPORT)
        web.add_json("https://acme.example/org", ORGANIZATION)

        response = await client.post(
            "/api/v1/expand",
            json={"identifier": PASSPORT_URL, "include_data": False},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["root"] == PASSPORT
        assert "data" not in data["links"]["https://acme.example/org"]

    async def test_expand_unresolvable_root(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/expand", json={"identifier": "https://acme.example/gone"})

        assert response.status_code == 502
        assert response.json()["error"]["type"] == "external_service_error"

    async def test_expand_requires_exactly_one_source(self, client: AsyncClient) -> None:
        neither = await client.post("/api/v1/expand", json={})
        both = await client.post("/api/v1/expand", json={"root": PASSPORT, "identifier": PASSPORT_URL})

        assert neither.status_code == 422
        assert both.status_code == 422

    async def test_expand_discovery_only(self, client: AsyncClient, web) -> None:
        response = await client.post("/api/v1/expand", json={"root": PASSPORT, "max_depth": 0})

        data = response.json()["data"]
        assert data["links"]["https://acme.example/org"]["status"] == "pending"
        assert web.requests == []


class TestScrapeEndpoint:
    async def test_scrape_saves_history(self, client: AsyncClient, web) -> None:
        web.add_json(PASSPORT_URL, PASSPORT)

        response = await client.post("/api/v1/scrape", json={"url": PASSPORT_URL})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["format"] == "JSON-LD (Schema.org)"
        saved_id = body["data"]["saved_id"]
        assert saved_id is not None

        stored = await client.get(f"/api/v1/documents/{saved_id}")
        assert stored.status_code == 200
        assert stored.json()["data"]["payload"] == PASSPORT

    async def test_scrape_without_saving(self, client: AsyncClient, web) -> None:
        web.add_json(PASSPORT_URL, PASSPORT)

        response = await client.post("/api/v1/scrape", json={"url": PASSPORT_URL, "save": False})

        assert response.json()["data"]["saved_id"] is None


class TestDiagnosticsEndpoints:
    async def test_discover_well_known(self, client: AsyncClient, web) -> None:
        web.add_json("https://acme.example/.well-known/did.json", {"id": "did:web:acme.example"})

        response = await client.post("/api/v1/discover-well-known", json={"base_url": "https://acme.example/shop"})

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["endpoints_found"] == 1
        assert body["message"] == "Found 1 endpoint(s). Try: https://acme.example/.well-known/did.json"

    async def test_discover_rejects_non_http(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/discover-well-known", json={"base_url": "did:key:abc"})

        assert response.status_code == 400

    async def test_inspect(self, client: AsyncClient, web) -> None:
        web.add_json(PASSPORT_URL, PASSPORT)

        response = await client.post("/api/v1/inspect", json={"url": PASSPORT_URL})

        body = response.json()
        assert body["success"] is True
        assert body["data"]["status_code"] == 200
        assert body["data"]["data"] == PASSPORT
