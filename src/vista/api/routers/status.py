"""Status endpoint: configuration summary and dependency checks."""

import logging

from fastapi import APIRouter, Depends

from vista.api.deps import get_admin, get_settings, get_vectorstore
from vista.api.schemas import ModelStatus, StatusResponse
from vista.config import Config
from vista.errors import VistaError
from vista.llm.admin import ProviderAdmin
from vista.models import Capability
from vista.vectorstore.store import VectorStore

router = APIRouter(prefix="/api/status", tags=["status"])

logger = logging.getLogger(__name__)


def _is_installed(model: str, installed: list[str]) -> bool:
    """Match by prefix so "llava" also matches "llava:latest"."""
    return any(name.startswith(model) for name in installed)


@router.get("", response_model=StatusResponse)
async def get_status(
    settings: Config = Depends(get_settings),
    admin: ProviderAdmin = Depends(get_admin),
    store: VectorStore = Depends(get_vectorstore),
) -> StatusResponse:
    """Report configuration and whether the provider and store are reachable."""
    try:
        installed = await admin.list_installed()
        provider_reachable = True
    except VistaError as e:
        logger.warning(f"Provider not reachable: {e}")
        installed = []
        provider_reachable = False

    configured = [
        (Capability.VISION, settings.models.vision_model),
        (Capability.EMBEDDING, settings.models.embedding_model),
        (Capability.SUMMARIZATION, settings.models.summarization_model),
    ]
    models = [
        ModelStatus(
            capability=capability.value, name=name, installed=_is_installed(name, installed)
        )
        for capability, name in configured
    ]

    try:
        record_count: int | None = await store.count()
        store_reachable = True
    except VistaError as e:
        logger.warning(f"Vector store not reachable: {e}")
        record_count = None
        store_reachable = False

    return StatusResponse(
        provider=settings.provider.name,
        provider_endpoint=settings.ollama_endpoint,
        provider_reachable=provider_reachable,
        models=models,
        store_target=settings.store_location,
        store_reachable=store_reachable,
        record_count=record_count,
        images_path=str(settings.images_path),
        vector_dimension=settings.store.vector_dimension,
        auto_flush_on_switch=settings.models.auto_flush_on_switch,
    )
