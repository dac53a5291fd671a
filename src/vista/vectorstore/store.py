"""ChromaDB vector store implementation."""

import asyncio
import gc
import logging
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar
from urllib.parse import urlparse

import chromadb
import httpx
from chromadb.config import Settings
from chromadb.errors import ChromaError

from vista.constants.files import UP_TO_DATE_TOLERANCE_SECONDS
from vista.errors import DimensionMismatch, IndexSchemaMismatch, StoreUnavailable
from vista.models import QueryResult, Record

logger = logging.getLogger(__name__)

T = TypeVar("T")

MEMORY_TARGET = ":memory:"

# Collection metadata keys
SPACE_KEY = "hnsw:space"
DIMENSION_KEY = "dimension"

# Record metadata keys; timestamps are stored as POSIX seconds
SOURCE_MODIFIED_KEY = "source_modified_at"
INDEXED_AT_KEY = "indexed_at"
LOCATOR_KEY = "source_locator"


def _to_epoch(value: datetime) -> float:
    return value.timestamp()


def _from_epoch(value: Any) -> datetime | None:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None
    return datetime.fromtimestamp(value, timezone.utc)


class VectorStore:
    """Vector store wrapper for ChromaDB.

    Holds one flat collection of image records, each with a description,
    an embedding of the configured dimension and timestamps used for
    deduplication. Similarity is ``1 - cosine_distance``.

    Every operation runs the blocking chromadb call in a worker thread under
    ``timeout``. Connection failures and expired deadlines surface as
    StoreUnavailable; the store itself never retries.
    """

    def __init__(
        self,
        target: str,
        collection_name: str = "image_vectors",
        dimension: int = 768,
        timeout: float = 30.0,
    ) -> None:
        """Initialize vector store.

        Args:
            target: Directory for persistent storage, ":memory:" for an
                in-process store, or an http(s)://host:port server URL.
            collection_name: Name of the collection holding the records.
            dimension: Embedding dimension D every record must have.
            timeout: Deadline in seconds for each store operation.
        """
        self.target = target
        self.collection_name = collection_name
        self.dimension = dimension
        self.metric = "cosine"
        self.timeout = timeout
        self._client: Any = None
        self._collection: Any = None

    # -------------------------------------------------------------------------
    # Connection handling
    # -------------------------------------------------------------------------

    def _connect(self) -> Any:
        if self._client is not None:
            return self._client

        settings = Settings(anonymized_telemetry=False)
        if self.target == MEMORY_TARGET:
            self._client = chromadb.EphemeralClient(settings=settings)
        elif self.target.startswith(("http://", "https://")):
            url = urlparse(self.target)
            try:
                self._client = chromadb.HttpClient(
                    host=url.hostname or "localhost",
                    port=url.port or (443 if url.scheme == "https" else 8000),
                    ssl=url.scheme == "https",
                    settings=settings,
                )
            except ValueError as e:
                # chromadb reports an unreachable server as ValueError
                raise StoreUnavailable(f"Vector store unreachable at {self.target}: {e}") from e
        else:
            self._client = chromadb.PersistentClient(path=self.target, settings=settings)
        return self._client

    def _open_collection(self, dimension: int, metric: str) -> Any:
        client = self._connect()
        try:
            collection = client.get_collection(name=self.collection_name, embedding_function=None)
        except (ValueError, ChromaError):
            logger.info(
                f"Creating collection {self.collection_name} (dimension={dimension}, {metric})"
            )
            return client.create_collection(
                name=self.collection_name,
                metadata={SPACE_KEY: metric, DIMENSION_KEY: dimension},
                embedding_function=None,
            )

        metadata = collection.metadata or {}
        # chromadb defaults to l2 when no space was recorded
        existing_metric = metadata.get(SPACE_KEY, "l2")
        if existing_metric != metric:
            raise IndexSchemaMismatch(
                f"Collection {self.collection_name} uses {existing_metric}, expected {metric}"
            )
        existing_dimension = metadata.get(DIMENSION_KEY)
        if existing_dimension is None:
            logger.warning(
                f"Collection {self.collection_name} does not record its dimension; "
                f"assuming {dimension}"
            )
        elif existing_dimension != dimension:
            raise IndexSchemaMismatch(
                f"Collection {self.collection_name} has dimension {existing_dimension}, "
                f"expected {dimension}"
            )
        return collection

    def _get_collection(self) -> Any:
        if self._collection is None:
            self._collection = self._open_collection(self.dimension, self.metric)
        return self._collection

    async def _run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args, **kwargs), timeout=self.timeout
            )
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise StoreUnavailable(
                f"Vector store operation timed out after {self.timeout}s"
            ) from e
        except (ConnectionError, httpx.TransportError) as e:
            raise StoreUnavailable(f"Vector store unreachable at {self.target}: {e}") from e

    def _check_dimension(self, vector: list[float]) -> None:
        if len(vector) != self.dimension:
            raise DimensionMismatch(self.dimension, len(vector))

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def ensure_index(self, dimension: int | None = None, metric: str = "cosine") -> None:
        """Create the collection if absent, or verify an existing one.

        Idempotent. Raises IndexSchemaMismatch when an existing collection
        was created with a different dimension or metric.
        """
        dimension = dimension if dimension is not None else self.dimension

        def _ensure() -> None:
            self._collection = self._open_collection(dimension, metric)

        await self._run(_ensure)
        self.dimension = dimension
        self.metric = metric

    async def upsert(
        self,
        id: str,
        description: str,
        embedding: list[float],
        source_modified_at: datetime,
        source_locator: str = "",
    ) -> None:
        """Insert or overwrite the record with ``id``.

        Raises:
            DimensionMismatch: If the embedding length is not D. Nothing is
                written in that case.
        """
        self._check_dimension(embedding)
        metadata = {
            SOURCE_MODIFIED_KEY: _to_epoch(source_modified_at),
            INDEXED_AT_KEY: _to_epoch(datetime.now(timezone.utc)),
            LOCATOR_KEY: source_locator,
        }

        def _upsert() -> None:
            self._get_collection().upsert(
                ids=[id],
                embeddings=[list(embedding)],
                documents=[description],
                metadatas=[metadata],
            )

        await self._run(_upsert)

    async def is_up_to_date(self, id: str, source_modified_at: datetime) -> bool:
        """Whether a record for ``id`` exists and matches ``source_modified_at``.

        Times within UP_TO_DATE_TOLERANCE_SECONDS of each other are equal.
        Never raises: unknown ids, records without a usable timestamp and an
        unreachable store all answer False.
        """

        def _metadata() -> dict[str, Any] | None:
            result = self._get_collection().get(ids=[id], include=["metadatas"])
            if not result["ids"]:
                return None
            metadatas = result.get("metadatas") or [None]
            return metadatas[0] or {}

        try:
            metadata = await self._run(_metadata)
        except StoreUnavailable as e:
            logger.warning(f"Could not check {id} for changes, treating as stale: {e}")
            return False

        if metadata is None:
            return False

        stored = _from_epoch(metadata.get(SOURCE_MODIFIED_KEY))
        if stored is None:
            logger.debug(f"Record {id} has no usable {SOURCE_MODIFIED_KEY}, treating as stale")
            return False

        drift = abs(stored.timestamp() - _to_epoch(source_modified_at))
        return drift <= UP_TO_DATE_TOLERANCE_SECONDS

    async def knn(self, query_vector: list[float], k: int) -> list[QueryResult]:
        """Return up to ``k`` nearest records, most similar first.

        An empty collection (or ``k < 1``) yields an empty list.
        """
        self._check_dimension(query_vector)

        def _query() -> list[QueryResult]:
            collection = self._get_collection()
            available = collection.count()
            if available == 0 or k < 1:
                return []

            result = collection.query(
                query_embeddings=[list(query_vector)],
                n_results=min(k, available),
                include=["documents", "metadatas", "distances"],
            )
            ids = result["ids"][0]
            documents = (result.get("documents") or [[]])[0] or []
            metadatas = (result.get("metadatas") or [[]])[0] or []
            distances = (result.get("distances") or [[]])[0] or []

            hits = []
            for i, record_id in enumerate(ids):
                metadata = metadatas[i] if i < len(metadatas) and metadatas[i] else {}
                hits.append(
                    QueryResult(
                        id=record_id,
                        description=documents[i] if i < len(documents) else "",
                        similarity=1.0 - float(distances[i]),
                        source_locator=str(metadata.get(LOCATOR_KEY, "")),
                    )
                )
            return hits

        hits = await self._run(_query)
        # chromadb already orders by distance; keep it stable for equal scores
        return sorted(hits, key=lambda hit: hit.similarity, reverse=True)

    async def get(self, id: str) -> Record | None:
        """Fetch a single record, or None if it does not exist."""

        def _get() -> Record | None:
            result = self._get_collection().get(
                ids=[id], include=["documents", "metadatas", "embeddings"]
            )
            if not result["ids"]:
                return None

            documents = result.get("documents")
            metadatas = result.get("metadatas")
            embeddings = result.get("embeddings")
            metadata = (metadatas[0] if metadatas is not None else None) or {}
            embedding = embeddings[0] if embeddings is not None and len(embeddings) else []
            return Record(
                id=result["ids"][0],
                description=(documents[0] if documents else "") or "",
                embedding=[float(v) for v in embedding],
                source_modified_at=_from_epoch(metadata.get(SOURCE_MODIFIED_KEY)),
                indexed_at=_from_epoch(metadata.get(INDEXED_AT_KEY)),
                source_locator=str(metadata.get(LOCATOR_KEY, "")),
            )

        return await self._run(_get)

    async def count(self) -> int:
        """Number of records in the collection."""
        return await self._run(lambda: self._get_collection().count())

    async def delete(self, id: str) -> bool:
        """Delete the record with ``id``.

        Returns:
            True if a record existed and was removed, False otherwise.
        """

        def _delete() -> bool:
            collection = self._get_collection()
            if not collection.get(ids=[id], include=["metadatas"])["ids"]:
                return False
            collection.delete(ids=[id])
            return True

        deleted = await self._run(_delete)
        if deleted:
            logger.info(f"Deleted record {id}")
        return deleted

    async def clear(self) -> None:
        """Remove every record, keeping the collection's schema."""

        def _clear() -> None:
            client = self._connect()
            try:
                client.delete_collection(name=self.collection_name)
            except (ValueError, ChromaError):
                logger.debug(f"Collection {self.collection_name} did not exist")
            self._collection = self._open_collection(self.dimension, self.metric)

        await self._run(_clear)

    def close(self) -> None:
        """Close the vector store and release resources.

        ChromaDB clients have no explicit close; the client's cached system is
        stopped so file handles on the persistence directory are released.
        """
        client = self._client
        self._collection = None
        self._client = None
        if client is None:
            return

        identifier = getattr(client, "_identifier", None)
        systems = getattr(client, "_identifier_to_system", None)
        if identifier is not None and isinstance(systems, dict):
            system = systems.pop(identifier, None)
            if system is not None and hasattr(system, "stop"):
                try:
                    system.stop()
                except RuntimeError as e:
                    logger.debug(f"Stopping chromadb system failed: {e}")

        gc.collect()
