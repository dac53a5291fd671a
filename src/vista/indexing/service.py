"""Indexing service: describe, embed and store images."""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Iterable

from vista.errors import DimensionMismatch
from vista.llm.gateway import ModelGateway
from vista.models import Candidate, IndexingStats, IndexReport
from vista.vectorstore.store import VectorStore

logger = logging.getLogger(__name__)

# Type alias for progress callback (done, total, candidate id)
IndexingProgressCallback = Callable[[int, int, str], Coroutine[Any, Any, None]]


class Indexer:
    """Service for indexing candidate images into the vector store.

    Each candidate goes through describe -> embed -> upsert. The batch runs in
    two phases: every pending candidate is described first, then every
    description is embedded and stored. The provider therefore switches from
    the vision model to the embedding model once per batch rather than once
    per image. Within a phase up to ``concurrency_limit`` candidates are in
    flight at once. A failure on one candidate is logged and counted; it never
    aborts the others.
    """

    def __init__(
        self,
        store: VectorStore,
        gateway: ModelGateway,
        concurrency_limit: int = 5,
        dedup_enabled: bool = True,
        force_reindex: bool = False,
    ) -> None:
        """Initialize indexing service.

        Args:
            store: Vector store receiving the records.
            gateway: Provider gateway for descriptions and embeddings.
            concurrency_limit: Default number of candidates processed at once.
            dedup_enabled: Default for skipping candidates already up to date.
            force_reindex: Default for reprocessing every candidate.
        """
        self._store = store
        self._gateway = gateway
        self.concurrency_limit = concurrency_limit
        self.dedup_enabled = dedup_enabled
        self.force_reindex = force_reindex

    async def index_all(
        self,
        candidates: Iterable[Candidate],
        concurrency_limit: int | None = None,
        dedup_enabled: bool | None = None,
        force_reindex: bool | None = None,
        progress_callback: IndexingProgressCallback | None = None,
    ) -> IndexReport:
        """Index every candidate and report the outcome.

        Args:
            candidates: Items to index.
            concurrency_limit: Override for the in-flight limit.
            dedup_enabled: Override for skipping up-to-date records.
            force_reindex: Override for reprocessing everything.
            progress_callback: Optional async callback invoked once per item,
                when it is skipped, fails or is stored.

        Returns:
            Counters for the run. Check ``all_failed`` to detect a run in which
            nothing succeeded; that case is not raised.
        """
        items = list(candidates)
        limit = concurrency_limit if concurrency_limit is not None else self.concurrency_limit
        dedup = dedup_enabled if dedup_enabled is not None else self.dedup_enabled
        force = force_reindex if force_reindex is not None else self.force_reindex
        if limit < 1:
            raise ValueError("concurrency_limit must be at least 1")

        report = IndexReport(total=len(items))
        if not items:
            logger.info("No images to index")
            return report

        logger.info(
            f"Indexing {len(items)} images (concurrency={limit}, dedup={dedup}, force={force})"
        )
        semaphore = asyncio.Semaphore(limit)
        done = 0

        async def _finished(candidate: Candidate) -> None:
            nonlocal done
            done += 1
            if progress_callback:
                await progress_callback(done, report.total, candidate.id)

        async def _describe(candidate: Candidate) -> str | None:
            async with semaphore:
                description = await self._describe_one(candidate, report, dedup and not force)
            if description is None:
                await _finished(candidate)
            return description

        async def _embed_and_store(candidate: Candidate, description: str) -> None:
            async with semaphore:
                await self._store_one(candidate, description, report)
            await _finished(candidate)

        descriptions = await asyncio.gather(*(_describe(candidate) for candidate in items))
        await asyncio.gather(
            *(
                _embed_and_store(candidate, description)
                for candidate, description in zip(items, descriptions)
                if description is not None
            )
        )

        logger.info(
            f"Indexing finished: {report.processed}/{report.total} processed, "
            f"{report.skipped} skipped, {report.failed} failed"
        )
        if report.all_failed:
            logger.error("Every image failed to index")
        return report

    async def _describe_one(
        self, candidate: Candidate, report: IndexReport, dedup: bool
    ) -> str | None:
        """Describe one candidate.

        Returns None when the candidate is skipped or fails; ``report`` is
        updated for those outcomes.
        """
        try:
            if dedup and await self._store.is_up_to_date(
                candidate.id, candidate.source_modified_at
            ):
                logger.debug(f"Skipping {candidate.id}: already up to date")
                report.processed += 1
                report.skipped += 1
                return None

            return await self._gateway.describe(candidate.content_ref)
        except Exception as e:
            logger.warning(f"Failed to describe {candidate.id}: {e}")
            report.failed += 1
            return None

    async def _store_one(
        self, candidate: Candidate, description: str, report: IndexReport
    ) -> None:
        """Embed and store one described candidate, recording the result in ``report``."""
        try:
            embedding = await self._gateway.embed(description)
            await self._store.upsert(
                candidate.id,
                description,
                embedding,
                candidate.source_modified_at,
                source_locator=candidate.content_ref,
            )
        except DimensionMismatch as e:
            logger.error(f"Failed to index {candidate.id}: {e}")
            report.failed += 1
            return
        except Exception as e:
            logger.warning(f"Failed to index {candidate.id}: {e}")
            report.failed += 1
            return

        logger.info(f"Indexed {candidate.id}")
        report.processed += 1

    async def indexing_stats(
        self, candidates: Iterable[Candidate], dedup_enabled: bool | None = None
    ) -> IndexingStats:
        """Count how many candidates are already indexed and how many are pending.

        With deduplication off nothing counts as indexed, since every
        candidate would be reprocessed.
        """
        items = list(candidates)
        dedup = dedup_enabled if dedup_enabled is not None else self.dedup_enabled
        dedup = dedup and not self.force_reindex

        indexed = 0
        if dedup:
            for candidate in items:
                if await self._store.is_up_to_date(candidate.id, candidate.source_modified_at):
                    indexed += 1

        return IndexingStats(total=len(items), indexed=indexed, pending=len(items) - indexed)
