# tests\adapters\test_api_endpoints.py
import pytest
from dependency_injector import providers
from fastapi import status
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from symbols_awakening.adapters.api.main import create_app
from symbols_awakening.core.domain.exceptions import ErrorKind
from symbols_awakening.core.domain.models import Result

API = "/api/v1"


@pytest.fixture
def client(container):
    """
    Returns a FastAPI TestClient.

    The 'container' fixture (from conftest.py) selects the seeded in-memory
    backend; entering the client runs the lifespan, which connects it.
    """
    app = create_app(container)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def mocked_client(container, mock_repo):
    """A TestClient whose repository is the mock from conftest.py."""
    container.symbol_repository.override(providers.Object(mock_repo))
    app = create_app(container)
    with TestClient(app) as c:
        yield c
    container.symbol_repository.reset_override()


class TestSymbolReads:

    def test_list_symbols(self, client):
        """
        Scenario: Plain listing with explicit paging.
        Expected: 200 OK, envelope with data ordered by name and pagination info.
        """
        response = client.get(f"{API}/symbols", params={"limit": 2, "offset": 0})

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert [s["id"] for s in body["data"]] == ["ankh", "infinity"]
        assert body["pagination"] == {"limit": 2, "offset": 0, "count": 2}

    def test_list_symbols_by_category_query(self, client):
        response = client.get(f"{API}/symbols", params={"category": "Spiritual"})

        body = response.json()
        assert [s["id"] for s in body["data"]] == ["mandala"]
        assert body["query"] == {"category": "Spiritual"}

    def test_list_symbols_search_wins_over_category(self, client):
        response = client.get(f"{API}/symbols", params={"category": "egyptian", "search": "tree"})
        assert [s["id"] for s in response.json()["data"]] == ["tree_of_life"]

    def test_limit_above_page_size_is_rejected(self, client):
        """
        Scenario: limit larger than the maximum page size.
        Expected: 400 with kind InvalidInput.
        """
        response = client.get(f"{API}/symbols", params={"limit": 500})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["success"] is False
        assert body["error"]["kind"] == ErrorKind.INVALID_INPUT.value

    def test_search_endpoint_ranks_results(self, client):
        response = client.get(f"{API}/symbols/search", params={"q": "life"})

        assert response.status_code == status.HTTP_200_OK
        assert [s["id"] for s in response.json()["data"]] == ["tree_of_life", "ankh", "ouroboros"]

    def test_search_requires_query(self, client):
        response = client.get(f"{API}/symbols/search")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_category_route_unknown_category_is_empty(self, client):
        response = client.get(f"{API}/symbols/category/nonexistent-category")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"] == []

    def test_get_symbol(self, client):
        response = client.get(f"{API}/symbols/infinity")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["name"] == "Infinity Symbol (∞)"
        assert "created_at" in data and "updated_at" in data

    def test_get_missing_symbol_is_404(self, client):
        response = client.get(f"{API}/symbols/does-not-exist")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["kind"] == ErrorKind.NOT_FOUND.value

    def test_categories(self, client):
        response = client.get(f"{API}/categories")

        body = response.json()
        assert body["data"][0] == "alchemical"
        assert body["count"] == 6


class TestSymbolWrites:

    def test_create_symbol(self, client):
        payload = {"id": "river", "name": "River", "description": "Flowing water", "category": "flow"}

        response = client.post(f"{API}/symbols", json=payload)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["id"] == "river"
        assert client.get(f"{API}/symbols/river").status_code == status.HTTP_200_OK

    def test_create_duplicate_is_409(self, client):
        payload = {"id": "infinity", "name": "Other", "description": "Other"}

        response = client.post(f"{API}/symbols", json=payload)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"]["kind"] == ErrorKind.ALREADY_EXISTS.value

    def test_create_validation_error(self, client):
        """
        Scenario: Payload with an illegal id and a missing description.
        Expected: 400 InvalidInput (not FastAPI's default 422).
        """
        response = client.post(f"{API}/symbols", json={"id": "bad id!", "name": "X"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["kind"] == ErrorKind.INVALID_INPUT.value

    def test_update_symbol_merges(self, client):
        response = client.put(f"{API}/symbols/mandala", json={"category": None})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["category"] is None
        assert data["name"] == "Mandala"

    def test_update_cannot_patch_id(self, client):
        response = client.put(f"{API}/symbols/mandala", json={"id": "other"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_update_missing_is_404(self, client):
        response = client.put(f"{API}/symbols/missing", json={"name": "x"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_with_cascade(self, client):
        response = client.delete(f"{API}/symbols/ouroboros", params={"cascade": "true"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is True
        related = client.get(f"{API}/symbols/infinity").json()["data"]["related_symbols"]
        assert "ouroboros" not in related

    def test_delete_missing_is_404(self, client):
        response = client.delete(f"{API}/symbols/missing")
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestSymbolSetEndpoints:

    def test_list_and_get(self, client):
        listed = client.get(f"{API}/symbol-sets").json()
        assert listed["pagination"]["count"] == 4

        response = client.get(f"{API}/symbol-sets/cyclical_symbols")
        assert response.json()["data"]["symbols"]["ouroboros"] == {"weight": 0.95}

    def test_missing_set_is_404(self, client):
        assert client.get(f"{API}/symbol-sets/nope").status_code == status.HTTP_404_NOT_FOUND

    def test_create_update_delete(self, client):
        created = client.post(
            f"{API}/symbol-sets",
            json={"id": "pair", "name": "Pair", "description": "Two symbols", "symbols": ["ankh", "mandala"]},
        )
        assert created.status_code == status.HTTP_201_CREATED
        assert created.json()["data"]["symbols"]["ankh"] == {"weight": 1.0}

        updated = client.put(f"{API}/symbol-sets/pair", json={"symbols": {"ankh": 0.5}})
        assert updated.json()["data"]["symbols"] == {"ankh": {"weight": 0.5}}

        assert client.delete(f"{API}/symbol-sets/pair").status_code == status.HTTP_200_OK
        assert client.get(f"{API}/symbol-sets/pair").status_code == status.HTTP_404_NOT_FOUND

    def test_weight_out_of_range_is_rejected(self, client):
        response = client.post(
            f"{API}/symbol-sets",
            json={"id": "heavy", "name": "Heavy", "description": "d", "symbols": {"ankh": 2}},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestSystemEndpoints:

    def test_health_ok(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["status"] == "healthy"
        assert body["services"]["database"] == "healthy"

    def test_liveness(self, client):
        assert client.get("/health/live").json()["status"] == "ok"

    def test_service_info(self, client):
        body = client.get(API).json()
        assert body["data"]["backend"] == "memory"
        assert body["data"]["endpoints"]["symbols"] == f"{API}/symbols"

    def test_health_unhealthy_is_503(self, mocked_client, mock_repo):
        """
        Scenario: The data store stops answering.
        Expected: 503 on /health and /health/ready.
        """
        mock_repo.health_check = AsyncMock(
            return_value=Result.fail(ErrorKind.BACKEND_FAILURE, "connection refused")
        )

        response = mocked_client.get("/health")
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["error"] == "connection refused"

        ready = mocked_client.get("/health/ready")
        assert ready.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert ready.json() == {"storage": "down"}

    def test_backend_failure_is_500(self, mocked_client, mock_repo):
        mock_repo.get_symbols = AsyncMock(
            return_value=Result.fail(ErrorKind.BACKEND_FAILURE, "disk I/O error")
        )

        response = mocked_client.get(f"{API}/symbols")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"] == {"kind": "BackendFailure", "message": "disk I/O error"}

    def test_unknown_route_is_404_envelope(self, client):
        response = client.get(f"{API}/nothing-here")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["success"] is False
