"""Search pipeline: embed the query, retrieve, budget, summarize."""

import logging
import time

from vista.constants.search import (
    DEFAULT_RESULT_LIMIT,
    NO_EMBEDDING_SUMMARY,
    NO_MATCHES_SUMMARY,
    OVER_BUDGET_SUMMARY,
    SEARCH_FAILED,
    SUMMARY_UNAVAILABLE,
)
from vista.errors import EmbeddingUnavailable, ValidationError, VistaError
from vista.llm.gateway import ModelGateway
from vista.models import PipelineStage, QueryResult, SearchMetrics, SearchOutcome
from vista.search.budget import ContextBudgetOptimizer
from vista.vectorstore.store import VectorStore

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class SearchPipeline:
    """Answers a natural-language query over the indexed images.

    Stages run in order: EMBEDDING, SEARCHING, OPTIMIZING, SUMMARIZING, then
    DONE or FAILED. Outcomes that leave nothing to summarize (no embedding,
    no matches) end FAILED with a placeholder summary instead of raising, and
    so do transient failures such as an unreachable store. Configuration
    errors (schema or dimension mismatch, rejected credentials) propagate. A
    failed summary still returns the retrieved results.

    The metrics of the most recent call, successful or not, are kept in
    ``last_metrics``.
    """

    def __init__(
        self,
        store: VectorStore,
        gateway: ModelGateway,
        optimizer: ContextBudgetOptimizer | None = None,
        result_limit: int = DEFAULT_RESULT_LIMIT,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._optimizer = optimizer or ContextBudgetOptimizer()
        self.result_limit = result_limit
        self._last_metrics: SearchMetrics | None = None

    @property
    def last_metrics(self) -> SearchMetrics | None:
        """Metrics of the most recent search, or None before the first one."""
        return self._last_metrics

    def _tokens_used(self, query: str, used: list[QueryResult], summary: str) -> int:
        estimate = self._optimizer.estimate
        return (
            estimate(query)
            + sum(estimate(result.description) for result in used)
            + estimate(summary)
            + self._optimizer.base_prompt_tokens
        )

    async def search(self, query: str) -> SearchOutcome:
        """Run the full pipeline for ``query``.

        Raises:
            ValidationError: If the query is blank. No provider call is made.
            IndexSchemaMismatch: If the index and the embedding model disagree.
            VistaError: Any other non-transient embedding or retrieval failure.
        """
        query = query.strip()
        if not query:
            raise ValidationError("Query must not be empty")

        embedding_ms = search_ms = summarization_ms = 0.0
        results: list[QueryResult] = []
        used: list[QueryResult] = []
        stage = PipelineStage.IDLE

        def finish(summary: str, final: PipelineStage) -> SearchOutcome:
            metrics = SearchMetrics(
                embedding_ms=embedding_ms,
                search_ms=search_ms,
                summarization_ms=summarization_ms,
                results_considered=len(results),
                results_used=len(used),
                tokens_used=self._tokens_used(query, used, summary),
            )
            self._last_metrics = metrics
            logger.info(
                f"Search {query!r} ended {final.value}: {len(used)}/{len(results)} results "
                f"used, {metrics.total_ms:.0f}ms"
            )
            return SearchOutcome(
                query=query, results=results, summary=summary, metrics=metrics, stage=final
            )

        try:
            stage = PipelineStage.EMBEDDING
            start = time.perf_counter()
            try:
                vector = await self._gateway.embed(query)
            except EmbeddingUnavailable as e:
                logger.warning(f"No embedding for query: {e}")
                vector = []
            embedding_ms = _elapsed_ms(start)
            if not vector:
                return finish(NO_EMBEDDING_SUMMARY, PipelineStage.FAILED)

            stage = PipelineStage.SEARCHING
            start = time.perf_counter()
            results = await self._store.knn(vector, self.result_limit)
            search_ms = _elapsed_ms(start)
            if not results:
                return finish(NO_MATCHES_SUMMARY, PipelineStage.FAILED)

            stage = PipelineStage.OPTIMIZING
            used = self._optimizer.select(results)
            if not used:
                logger.info("No result fits the context budget, skipping summarization")
                return finish(OVER_BUDGET_SUMMARY, PipelineStage.DONE)
            logger.debug(
                f"Selected {len(used)}/{len(results)} results, "
                f"~{self._optimizer.estimate_cost(used)} prompt tokens"
            )

            stage = PipelineStage.SUMMARIZING
            start = time.perf_counter()
            try:
                summary = await self._gateway.summarize(query, used)
            except VistaError as e:
                summarization_ms = _elapsed_ms(start)
                logger.error(f"Summarization failed: {e}")
                return finish(SUMMARY_UNAVAILABLE.format(reason=e), PipelineStage.FAILED)
            summarization_ms = _elapsed_ms(start)
            return finish(summary, PipelineStage.DONE)
        except Exception as e:
            if stage is PipelineStage.EMBEDDING:
                embedding_ms = _elapsed_ms(start)
            elif stage is PipelineStage.SEARCHING:
                search_ms = _elapsed_ms(start)
            logger.error(f"Search failed during {stage.value}: {e}")
            if isinstance(e, VistaError) and e.is_transient:
                return finish(SEARCH_FAILED.format(reason=e), PipelineStage.FAILED)
            finish("", PipelineStage.FAILED)
            raise
