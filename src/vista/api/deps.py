"""FastAPI dependency injection functions."""

from functools import lru_cache

from vista.config import Config, load_settings
from vista.indexing.service import Indexer
from vista.llm.admin import ProviderAdmin
from vista.llm.client import LLMClient
from vista.llm.gateway import LiteLLMGateway
from vista.llm.orchestrator import ModelOrchestrator
from vista.search.budget import ContextBudgetOptimizer
from vista.search.pipeline import SearchPipeline
from vista.vectorstore.store import VectorStore


@lru_cache
def get_settings() -> Config:
    """Get cached application settings."""
    return load_settings()


_vectorstore_instance: VectorStore | None = None


def get_vectorstore() -> VectorStore:
    """Get the shared vector store instance."""
    global _vectorstore_instance
    if _vectorstore_instance is None:
        settings = get_settings()
        _vectorstore_instance = VectorStore(
            settings.store_location,
            collection_name=settings.store.collection_name,
            dimension=settings.store.vector_dimension,
            timeout=settings.store.timeout_seconds,
        )
    return _vectorstore_instance


_admin_instance: ProviderAdmin | None = None


def get_admin() -> ProviderAdmin:
    """Get the provider model-management client."""
    global _admin_instance
    if _admin_instance is None:
        _admin_instance = ProviderAdmin(get_settings().ollama_endpoint)
    return _admin_instance


_orchestrator_instance: ModelOrchestrator | None = None


def get_orchestrator() -> ModelOrchestrator:
    """Get the process-wide model orchestrator.

    There is exactly one per process so every capability switch goes through
    the same slot and lock.
    """
    global _orchestrator_instance
    if _orchestrator_instance is None:
        settings = get_settings()
        _orchestrator_instance = ModelOrchestrator(
            get_admin(),
            auto_flush=settings.models.auto_flush_on_switch,
            settle_interval=settings.models.settle_interval_seconds,
        )
    return _orchestrator_instance


_llm_instance: LLMClient | None = None


def get_llm() -> LLMClient:
    """Get LLM client instance."""
    global _llm_instance
    if _llm_instance is None:
        settings = get_settings()
        _llm_instance = LLMClient(
            provider=settings.provider.name,
            endpoint=settings.ollama_endpoint,
            timeout=settings.provider.request_timeout_seconds,
            log_path=settings.llm_log_path,
        )
    return _llm_instance


_gateway_instance: LiteLLMGateway | None = None


def get_gateway() -> LiteLLMGateway:
    global _gateway_instance
    if _gateway_instance is None:
        _gateway_instance = LiteLLMGateway.from_config(
            get_settings(), get_llm(), get_orchestrator()
        )
    return _gateway_instance


_pipeline_instance: SearchPipeline | None = None


def get_pipeline() -> SearchPipeline:
    """Get the search pipeline; shared so ``last_metrics`` survives requests."""
    global _pipeline_instance
    if _pipeline_instance is None:
        settings = get_settings()
        optimizer = ContextBudgetOptimizer(
            budget=settings.search.max_context_tokens,
            base_prompt_tokens=settings.search.base_prompt_tokens,
            per_item_overhead=settings.search.per_item_overhead_tokens,
        )
        _pipeline_instance = SearchPipeline(
            get_vectorstore(),
            get_gateway(),
            optimizer=optimizer,
            result_limit=settings.search.result_limit,
        )
    return _pipeline_instance


def get_indexer() -> Indexer:
    settings = get_settings()
    return Indexer(
        get_vectorstore(),
        get_gateway(),
        concurrency_limit=settings.indexing.concurrency_limit,
        dedup_enabled=settings.indexing.enable_deduplication,
        force_reindex=settings.indexing.force_reindex,
    )


def _reset_instances() -> None:
    """Reset all cached instances (for testing only)."""
    global _vectorstore_instance, _admin_instance, _orchestrator_instance
    global _llm_instance, _gateway_instance, _pipeline_instance
    if _vectorstore_instance is not None:
        _vectorstore_instance.close()
    _vectorstore_instance = None
    _admin_instance = None
    _orchestrator_instance = None
    _llm_instance = None
    _gateway_instance = None
    _pipeline_instance = None
    get_settings.cache_clear()
    load_settings.cache_clear()
