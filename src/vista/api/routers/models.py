"""Model management endpoints."""

from fastapi import APIRouter, Depends

from vista.api.deps import get_orchestrator
from vista.api.schemas import FlushResponse
from vista.llm.orchestrator import ModelOrchestrator

router = APIRouter(prefix="/api/models", tags=["models"])


@router.post("/flush", response_model=FlushResponse)
async def flush_models(
    orchestrator: ModelOrchestrator = Depends(get_orchestrator),
) -> FlushResponse:
    """Unload every model resident on the provider."""
    return FlushResponse(flushed=await orchestrator.flush_all())
