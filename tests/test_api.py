"""HTTP API tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from vista.api import deps
from vista.config import Config
from vista.errors import (
    IndexSchemaMismatch,
    LLMTimeoutError,
    ProviderUnavailable,
    StoreUnavailable,
)
from vista.indexing.service import Indexer
from vista.llm.admin import ProviderAdmin
from vista.llm.orchestrator import ModelOrchestrator
from vista.main import app
from vista.models import QueryResult
from vista.search.budget import ContextBudgetOptimizer
from vista.search.pipeline import SearchPipeline
from vista.vectorstore.store import VectorStore


class StubGateway:
    async def describe(self, content_ref: str) -> str:
        return f"photo at {content_ref}"

    async def embed(self, text: str) -> list[float]:
        return [1.0, 0.5, 0.25, 0.0]

    async def summarize(self, query: str, results: list[QueryResult]) -> str:
        return f"{len(results)} images match {query}"


@pytest.fixture
def settings(tmp_path, image_dir) -> Config:
    return Config(data_dir=tmp_path, images_path_override=str(image_dir))


@pytest.fixture
async def store(temp_vectorstore: VectorStore) -> VectorStore:
    await temp_vectorstore.ensure_index(4)
    return temp_vectorstore


@pytest.fixture
def pipeline(store) -> SearchPipeline:
    return SearchPipeline(store, StubGateway(), ContextBudgetOptimizer())


@pytest.fixture
def orchestrator() -> MagicMock:
    orchestrator = MagicMock(spec=ModelOrchestrator)
    orchestrator.flush_all = AsyncMock(return_value=True)
    return orchestrator


@pytest.fixture
def admin() -> MagicMock:
    admin = MagicMock(spec=ProviderAdmin)
    admin.list_installed = AsyncMock(return_value=["llava:34b", "nomic-embed-text:latest"])
    return admin


@pytest.fixture
async def client(settings, store, pipeline, orchestrator, admin):
    """Create async test client with dependencies pointed at test doubles."""
    app.dependency_overrides[deps.get_settings] = lambda: settings
    app.dependency_overrides[deps.get_vectorstore] = lambda: store
    app.dependency_overrides[deps.get_pipeline] = lambda: pipeline
    app.dependency_overrides[deps.get_indexer] = lambda: Indexer(store, StubGateway())
    app.dependency_overrides[deps.get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[deps.get_admin] = lambda: admin
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()


async def test_health_check_returns_healthy(client: AsyncClient):
    """Health endpoint returns healthy status."""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# =============================================================================
# Indexing
# =============================================================================


async def test_index_images_in_configured_folder(client: AsyncClient, store: VectorStore):
    response = await client.post("/api/index")

    assert response.status_code == 200
    assert response.json() == {
        "total": 3,
        "processed": 3,
        "failed": 0,
        "skipped": 0,
        "all_failed": False,
    }
    assert await store.count() == 3


async def test_reindex_skips_unchanged_images(client: AsyncClient):
    await client.post("/api/index")

    response = await client.post("/api/index", json={})

    assert response.json()["skipped"] == 3


async def test_force_reindex_from_request(client: AsyncClient):
    await client.post("/api/index")

    response = await client.post("/api/index", json={"force_reindex": True})

    assert response.json()["skipped"] == 0
    assert response.json()["processed"] == 3


async def test_index_missing_folder_returns_404(client: AsyncClient, tmp_path):
    response = await client.post("/api/index", json={"path": str(tmp_path / "nowhere")})

    assert response.status_code == 404


async def test_index_stats(client: AsyncClient):
    before = (await client.get("/api/index/stats")).json()
    await client.post("/api/index")
    after = (await client.get("/api/index/stats")).json()

    assert (before["total"], before["indexed"], before["pending"]) == (3, 0, 3)
    assert (after["total"], after["indexed"], after["pending"]) == (3, 3, 0)


# =============================================================================
# Search
# =============================================================================


async def test_search_returns_results_summary_and_metrics(client: AsyncClient):
    await client.post("/api/index")

    response = await client.get("/api/search", params={"q": "beach"})

    assert response.status_code == 200
    data = response.json()
    assert data["query"] == "beach"
    assert data["stage"] == "done"
    assert len(data["results"]) == 3
    assert data["summary"] == "3 images match beach"
    assert data["metrics"]["results_used"] == 3


async def test_search_on_empty_index_returns_placeholder(client: AsyncClient):
    response = await client.get("/api/search", params={"q": "beach"})

    assert response.status_code == 200
    assert response.json()["stage"] == "failed"
    assert response.json()["results"] == []


async def test_blank_search_is_422(client: AsyncClient):
    response = await client.get("/api/search", params={"q": "  "})

    assert response.status_code == 422


async def test_search_store_outage_returns_failed_outcome(
    client: AsyncClient, pipeline: SearchPipeline
):
    pipeline._store = MagicMock(spec=VectorStore)
    pipeline._store.knn = AsyncMock(side_effect=StoreUnavailable("down"))

    response = await client.get("/api/search", params={"q": "beach"})

    assert response.status_code == 200
    assert response.json()["stage"] == "failed"
    assert response.json()["summary"] == "Search failed: down"


async def test_search_schema_mismatch_is_500(client: AsyncClient, pipeline: SearchPipeline):
    pipeline._store = MagicMock(spec=VectorStore)
    pipeline._store.knn = AsyncMock(side_effect=IndexSchemaMismatch("dimension 8 != 4"))

    response = await client.get("/api/search", params={"q": "beach"})

    assert response.status_code == 500
    assert "dimension" in response.json()["detail"]


async def test_search_dimension_mismatch_is_500(client: AsyncClient, pipeline: SearchPipeline):
    """A query embedding of the wrong size is a server misconfiguration."""
    gateway = StubGateway()
    gateway.embed = AsyncMock(return_value=[1.0, 0.0])
    pipeline._gateway = gateway

    response = await client.get("/api/search", params={"q": "beach"})

    assert response.status_code == 500
    assert "dimensions" in response.json()["detail"]


async def test_search_embedding_timeout_returns_failed_outcome(
    client: AsyncClient, pipeline: SearchPipeline
):
    gateway = StubGateway()
    gateway.embed = AsyncMock(side_effect=LLMTimeoutError("slow"))
    pipeline._gateway = gateway

    response = await client.get("/api/search", params={"q": "beach"})

    assert response.status_code == 200
    assert response.json()["stage"] == "failed"


async def test_metrics_before_any_search_is_404(client: AsyncClient):
    response = await client.get("/api/search/metrics")

    assert response.status_code == 404


async def test_metrics_after_search(client: AsyncClient):
    await client.post("/api/index")
    await client.get("/api/search", params={"q": "beach"})

    response = await client.get("/api/search/metrics")

    assert response.status_code == 200
    assert response.json()["results_considered"] == 3


# =============================================================================
# Records and models
# =============================================================================


async def test_delete_record(client: AsyncClient, store: VectorStore):
    await client.post("/api/index")

    first = await client.delete("/api/records/beach.jpg")
    second = await client.delete("/api/records/beach.jpg")

    assert first.json() == {"deleted": True}
    assert second.json() == {"deleted": False}
    assert await store.count() == 2


async def test_clear_records(client: AsyncClient, store: VectorStore):
    await client.post("/api/index")

    response = await client.delete("/api/records")

    assert response.json() == {"removed": 3}
    assert await store.count() == 0
    assert (await client.get("/api/index/stats")).json()["pending"] == 3


async def test_flush_models(client: AsyncClient, orchestrator: MagicMock):
    response = await client.post("/api/models/flush")

    assert response.json() == {"flushed": True}
    orchestrator.flush_all.assert_awaited_once()


# =============================================================================
# Status
# =============================================================================


async def test_status_reports_models_and_store(client: AsyncClient, settings: Config):
    response = await client.get("/api/status")

    data = response.json()
    assert data["provider_reachable"] is True
    assert data["store_reachable"] is True
    assert data["record_count"] == 0
    installed = {m["capability"]: m["installed"] for m in data["models"]}
    assert installed == {"vision": True, "embedding": True, "summarization": False}
    assert data["vector_dimension"] == settings.store.vector_dimension


async def test_status_with_provider_down(client: AsyncClient, admin: MagicMock):
    admin.list_installed.side_effect = ProviderUnavailable("refused")

    data = (await client.get("/api/status")).json()

    assert data["provider_reachable"] is False
    assert all(not m["installed"] for m in data["models"])


async def test_status_with_store_down(client: AsyncClient, store: VectorStore):
    store.count = AsyncMock(side_effect=StoreUnavailable("down"))

    data = (await client.get("/api/status")).json()

    assert data["store_reachable"] is False
    assert data["record_count"] is None


def test_reset_instances_clears_singletons(tmp_path, monkeypatch):
    monkeypatch.setenv("VISTA_HOME", str(tmp_path))
    monkeypatch.setenv("VISTA_STORE_TARGET", ":memory:")
    deps._reset_instances()

    orchestrator = deps.get_orchestrator()
    assert deps.get_orchestrator() is orchestrator
    assert deps.get_pipeline() is deps.get_pipeline()

    deps._reset_instances()
    assert deps.get_orchestrator() is not orchestrator
    deps._reset_instances()
