"""Search endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from vista.api.deps import get_pipeline
from vista.api.errors import to_http_exception
from vista.api.schemas import QueryResultOut, SearchMetricsOut, SearchResponse
from vista.errors import VistaError
from vista.search.pipeline import SearchPipeline

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search(
    q: str = Query(..., description="Natural-language description of the images wanted"),
    pipeline: SearchPipeline = Depends(get_pipeline),
) -> SearchResponse:
    """Find the images most similar to the query and summarize them."""
    try:
        outcome = await pipeline.search(q)
    except VistaError as e:
        raise to_http_exception(e) from e

    return SearchResponse(
        query=outcome.query,
        results=[QueryResultOut.from_result(r) for r in outcome.results],
        summary=outcome.summary,
        stage=outcome.stage.value,
        metrics=SearchMetricsOut.from_metrics(outcome.metrics),
    )


@router.get("/metrics", response_model=SearchMetricsOut)
async def last_metrics(
    pipeline: SearchPipeline = Depends(get_pipeline),
) -> SearchMetricsOut:
    """Metrics of the most recent search."""
    metrics = pipeline.last_metrics
    if metrics is None:
        raise HTTPException(status_code=404, detail="No search has been run yet")
    return SearchMetricsOut.from_metrics(metrics)
