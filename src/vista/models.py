"""Core data types shared by indexing, storage and search."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Capability(str, Enum):
    """Generative capability classes that compete for accelerator memory."""

    VISION = "vision"
    EMBEDDING = "embedding"
    SUMMARIZATION = "summarization"


@dataclass(frozen=True)
class Candidate:
    """An item offered for indexing by a discovery collaborator.

    Attributes:
        id: Stable key for the item (the file name for images).
        content_ref: Reference the describer can resolve to raw content.
        source_modified_at: Modification time of the underlying content.
    """

    id: str
    content_ref: str
    source_modified_at: datetime


@dataclass(frozen=True)
class Record:
    """One indexed item as stored in the vector store."""

    id: str
    description: str
    embedding: list[float]
    source_modified_at: datetime | None
    indexed_at: datetime | None
    source_locator: str = ""


@dataclass(frozen=True)
class QueryResult:
    """A single nearest-neighbour hit.

    ``similarity`` is ``1 - cosine_distance`` and lies in [-1, 1].
    """

    id: str
    description: str
    similarity: float
    source_locator: str = ""


@dataclass(frozen=True)
class SearchMetrics:
    """Timing and volume figures for one search call."""

    embedding_ms: float = 0.0
    search_ms: float = 0.0
    summarization_ms: float = 0.0
    results_considered: int = 0
    results_used: int = 0
    tokens_used: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_ms(self) -> float:
        return self.embedding_ms + self.search_ms + self.summarization_ms


@dataclass
class IndexReport:
    """Outcome counters for one indexing run.

    Skipped (already up-to-date) items are counted in ``processed`` too.
    """

    total: int = 0
    processed: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def all_failed(self) -> bool:
        """True when there was work to do and nothing succeeded."""
        return self.processed == 0 and self.total > 0


@dataclass(frozen=True)
class IndexingStats:
    """Pre-flight view of how much of a candidate set still needs work."""

    total: int
    indexed: int
    pending: int


class PipelineStage(str, Enum):
    """Stages a search passes through. DONE and FAILED are terminal."""

    IDLE = "idle"
    EMBEDDING = "embedding"
    SEARCHING = "searching"
    OPTIMIZING = "optimizing"
    SUMMARIZING = "summarizing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class SearchOutcome:
    """Everything a search call returns.

    ``results`` holds every retrieved hit, most similar first;
    ``metrics.results_used`` says how many of them reached the summarizer.
    """

    query: str
    results: list[QueryResult]
    summary: str
    metrics: SearchMetrics
    stage: PipelineStage
