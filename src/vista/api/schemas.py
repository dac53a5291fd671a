"""Pydantic schemas for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from vista.models import IndexingStats, IndexReport, QueryResult, SearchMetrics


class QueryResultOut(BaseModel):
    """A single search hit."""

    id: str
    description: str
    similarity: float
    source_locator: str = ""

    @classmethod
    def from_result(cls, result: QueryResult) -> "QueryResultOut":
        return cls(
            id=result.id,
            description=result.description,
            similarity=result.similarity,
            source_locator=result.source_locator,
        )


class SearchMetricsOut(BaseModel):
    """Timing and volume figures for one search."""

    embedding_ms: float
    search_ms: float
    summarization_ms: float
    total_ms: float
    results_considered: int
    results_used: int
    tokens_used: int
    timestamp: datetime

    @classmethod
    def from_metrics(cls, metrics: SearchMetrics) -> "SearchMetricsOut":
        return cls(
            embedding_ms=metrics.embedding_ms,
            search_ms=metrics.search_ms,
            summarization_ms=metrics.summarization_ms,
            total_ms=metrics.total_ms,
            results_considered=metrics.results_considered,
            results_used=metrics.results_used,
            tokens_used=metrics.tokens_used,
            timestamp=metrics.timestamp,
        )


class SearchResponse(BaseModel):
    """Search response with results, summary and metrics."""

    query: str
    results: list[QueryResultOut]
    summary: str
    stage: str
    metrics: SearchMetricsOut


class IndexRequest(BaseModel):
    """Request to index a folder of images."""

    path: str | None = Field(None, description="Image folder; defaults to the configured one")
    force_reindex: bool | None = Field(None, description="Reprocess up-to-date images")


class IndexReportOut(BaseModel):
    """Outcome of an indexing run."""

    total: int
    processed: int
    failed: int
    skipped: int
    all_failed: bool

    @classmethod
    def from_report(cls, report: IndexReport) -> "IndexReportOut":
        return cls(
            total=report.total,
            processed=report.processed,
            failed=report.failed,
            skipped=report.skipped,
            all_failed=report.all_failed,
        )


class IndexingStatsOut(BaseModel):
    """How many images are already indexed and how many are pending."""

    path: str
    total: int
    indexed: int
    pending: int

    @classmethod
    def from_stats(cls, path: str, stats: IndexingStats) -> "IndexingStatsOut":
        return cls(path=path, total=stats.total, indexed=stats.indexed, pending=stats.pending)


class ModelStatus(BaseModel):
    """Whether a configured model is installed on the provider."""

    capability: str
    name: str
    installed: bool


class StatusResponse(BaseModel):
    """Configuration summary and dependency health."""

    provider: str
    provider_endpoint: str
    provider_reachable: bool
    models: list[ModelStatus]
    store_target: str
    store_reachable: bool
    record_count: int | None = None
    images_path: str
    vector_dimension: int
    auto_flush_on_switch: bool


class DeleteRecordResponse(BaseModel):
    deleted: bool


class ClearRecordsResponse(BaseModel):
    removed: int


class FlushResponse(BaseModel):
    flushed: bool
