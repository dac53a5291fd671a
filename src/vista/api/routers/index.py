"""Indexing endpoints."""

import asyncio
import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query

from vista.api.deps import get_indexer, get_settings
from vista.api.errors import to_http_exception
from vista.api.schemas import IndexingStatsOut, IndexReportOut, IndexRequest
from vista.config import Config
from vista.errors import VistaError
from vista.indexing.candidates import discover_images
from vista.indexing.service import Indexer
from vista.models import Candidate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/index", tags=["index"])

# Log indexing progress every N images
PROGRESS_LOG_INTERVAL = 10


def _resolve_images_path(path: str | None, settings: Config) -> Path:
    images_path = Path(path).expanduser() if path else settings.images_path
    if not images_path.is_dir():
        raise HTTPException(status_code=404, detail=f"Image directory not found: {images_path}")
    return images_path


async def _discover(images_path: Path) -> list[Candidate]:
    return await asyncio.to_thread(discover_images, images_path)


async def _log_progress(done: int, total: int, candidate_id: str) -> None:
    if done % PROGRESS_LOG_INTERVAL == 0 or done == total:
        logger.info(f"Indexing progress: {done}/{total} ({candidate_id})")


@router.post("", response_model=IndexReportOut)
async def index_images(
    request: IndexRequest | None = None,
    settings: Config = Depends(get_settings),
    indexer: Indexer = Depends(get_indexer),
) -> IndexReportOut:
    """Index every image in the folder.

    Up-to-date images are skipped unless force_reindex is set. Individual
    failures are counted in the report; the request itself only fails when
    the folder is missing or the store cannot be reached.
    """
    request = request or IndexRequest()
    images_path = _resolve_images_path(request.path, settings)
    candidates = await _discover(images_path)

    try:
        report = await indexer.index_all(
            candidates,
            force_reindex=request.force_reindex,
            progress_callback=_log_progress,
        )
    except VistaError as e:
        raise to_http_exception(e) from e
    return IndexReportOut.from_report(report)


@router.get("/stats", response_model=IndexingStatsOut)
async def indexing_stats(
    path: str | None = Query(None, description="Image folder; defaults to the configured one"),
    settings: Config = Depends(get_settings),
    indexer: Indexer = Depends(get_indexer),
) -> IndexingStatsOut:
    """Count indexed and pending images in the folder."""
    images_path = _resolve_images_path(path, settings)
    stats = await indexer.indexing_stats(await _discover(images_path))
    return IndexingStatsOut.from_stats(str(images_path), stats)
