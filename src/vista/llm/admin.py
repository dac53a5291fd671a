"""Model-management calls against the Ollama REST API.

LiteLLM covers inference only, so listing installed/resident models and
evicting a model from memory go through plain httpx requests.
"""

import logging

import httpx

from vista.constants.llm import ADMIN_TIMEOUT_SECONDS, DEFAULT_OLLAMA_ENDPOINT
from vista.errors import ProviderUnavailable

logger = logging.getLogger(__name__)


class ProviderAdmin:
    """Thin async client for Ollama's model-management endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_ENDPOINT,
        timeout: float = ADMIN_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the admin client.

        Args:
            base_url: Ollama server URL.
            timeout: Deadline in seconds for each request.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def _get_model_names(self, path: str) -> list[str]:
        try:
            async with self._client() as client:
                response = await client.get(path)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderUnavailable(f"GET {path} failed: {e}") from e

        names = []
        for model in payload.get("models") or []:
            name = model.get("name") or model.get("model")
            if name:
                names.append(name)
        return names

    async def list_installed(self) -> list[str]:
        """Names of models available on the server (``/api/tags``)."""
        return await self._get_model_names("/api/tags")

    async def list_loaded(self) -> list[str]:
        """Names of models currently resident in memory (``/api/ps``)."""
        return await self._get_model_names("/api/ps")

    async def unload(self, model: str) -> None:
        """Evict a model from memory by requesting ``keep_alive: 0``."""
        try:
            async with self._client() as client:
                response = await client.post(
                    "/api/generate", json={"model": model, "keep_alive": 0}
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"Unloading {model} failed: {e}") from e
        logger.info(f"Unloaded model: {model}")
