"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

# Logging constants defined here (not in constants/) because logging.basicConfig()
# must run before any module imports that might create loggers.
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=logging.INFO,
)

# Unify uvicorn loggers with app format
for uvicorn_logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
    uvicorn_logger = logging.getLogger(uvicorn_logger_name)
    uvicorn_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    uvicorn_logger.addHandler(handler)

# LiteLLM logs every request at INFO; the JSONL query log already records them
logging.getLogger("LiteLLM").setLevel(logging.WARNING)

from vista import __version__  # noqa: E402
from vista.api.deps import get_orchestrator, get_settings, get_vectorstore  # noqa: E402
from vista.api.routers import index, models, records, search, status  # noqa: E402
from vista.errors import VistaError  # noqa: E402

logger = logging.getLogger(__name__)


def _ensure_data_dir() -> None:
    """Create the data directory and its logs folder if missing."""
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.llm_log_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"Data directory: {settings.data_dir}")


async def _flush_models_on_startup() -> None:
    """Evict models left resident by a previous run."""
    if not get_settings().models.auto_flush_on_switch:
        return
    if await get_orchestrator().flush_all():
        logger.info("Flushed resident models")
    else:
        logger.warning("Startup model flush incomplete; continuing")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan handler for startup and shutdown events.

    On startup:
    - Ensures the data directory exists
    - Creates or verifies the vector index (a schema mismatch aborts startup)
    - Flushes resident models when auto-flush is enabled

    On shutdown:
    - Releases the vector store
    """
    _ensure_data_dir()

    settings = get_settings()
    store = get_vectorstore()
    try:
        await store.ensure_index(settings.store.vector_dimension)
    except VistaError as e:
        if e.is_transient:
            logger.warning(f"Vector store not ready at startup: {e}")
        else:
            raise

    await _flush_models_on_startup()

    logger.info("Vista started")

    yield

    store.close()


app = FastAPI(
    title="Vista",
    description="Natural-language search over a local image collection",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(search.router)
app.include_router(index.router)
app.include_router(records.router)
app.include_router(models.router)
app.include_router(status.router)
