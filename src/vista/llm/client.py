"""LiteLLM-based LLM client."""

import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from litellm import acompletion, aembedding
from litellm.exceptions import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    BadGatewayError,
    BadRequestError,
    ContextWindowExceededError,
    InternalServerError,
    NotFoundError,
    RateLimitError,
    ServiceUnavailableError,
    Timeout,
    UnprocessableEntityError,
)

from vista.constants.llm import REQUEST_TIMEOUT_SECONDS
from vista.errors import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    LLMRequestError,
    LLMServerError,
    LLMTimeoutError,
)

logger = logging.getLogger(__name__)

# Everything a LiteLLM call can raise that the client translates
_PROVIDER_ERRORS = (
    APIError,
    APIConnectionError,
    AuthenticationError,
    BadGatewayError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    RateLimitError,
    ServiceUnavailableError,
    Timeout,
    UnprocessableEntityError,
    asyncio.TimeoutError,
)


class LLMClient:
    """Unified client for chat, vision and embedding calls via LiteLLM.

    One client serves every model; the model name is passed per call so the
    vision, embedding and summarization capabilities share a connection
    configuration and a query log.
    """

    def __init__(
        self,
        provider: str,
        endpoint: str | None = None,
        api_key: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        log_path: Path | None = None,
    ):
        """Initialize LLM client.

        Args:
            provider: LLM provider (ollama, openai, ...).
            endpoint: Optional custom endpoint (for Ollama).
            api_key: Optional API key (uses env var if not provided).
            timeout: Deadline in seconds applied to every call.
            log_path: Optional path to JSONL log file for query logging.
        """
        self.provider = provider
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self.log_path = log_path

    def _log_query(
        self,
        kind: str,
        model: str,
        prompt: str,
        image_count: int,
        response: str | None,
        duration_ms: int,
        error: str | None,
    ) -> None:
        """Append a query to the JSONL log file.

        Images are recorded as a count only.
        """
        if not self.log_path:
            return

        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "provider": self.provider,
            "model": model,
            "kind": kind,
            "request": {"prompt": prompt, "images": image_count},
            "response": response,
            "duration_ms": duration_ms,
            "error": error,
        }

        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.debug(f"Could not write LLM query log: {e}")

    def _get_model_string(self, model: str) -> str:
        """Get LiteLLM model string in provider/model format."""
        if self.provider == "openai":
            return model
        return f"{self.provider}/{model}"

    def _base_kwargs(self, model: str) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self._get_model_string(model),
            "timeout": self.timeout,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.endpoint and self.provider == "ollama":
            kwargs["api_base"] = self.endpoint
        return kwargs

    def _translate_error(self, e: Exception) -> LLMError:
        """Map LiteLLM and asyncio exceptions onto the Vista taxonomy."""
        if isinstance(e, AuthenticationError):
            return LLMAuthenticationError(f"Authentication failed: {e}")
        if isinstance(e, RateLimitError):
            return LLMRateLimitError(f"Rate limit exceeded: {e}")
        if isinstance(e, ServiceUnavailableError):
            return LLMRateLimitError(f"Provider overloaded: {e}")
        if isinstance(e, (Timeout, asyncio.TimeoutError, TimeoutError)):
            return LLMTimeoutError(f"Request timed out after {self.timeout}s")
        if isinstance(e, APIConnectionError):
            return LLMConnectionError(f"Connection failed: {e}")
        if isinstance(e, ContextWindowExceededError):
            return LLMRequestError(f"Context window exceeded: {e}")
        if isinstance(e, (InternalServerError, BadGatewayError)):
            return LLMServerError(f"Provider error: {e}")
        if isinstance(e, (BadRequestError, NotFoundError, UnprocessableEntityError)):
            return LLMRequestError(f"Request rejected: {e}")
        return LLMError(f"LLM API error: {e}")

    async def generate(
        self,
        prompt: str,
        model: str,
        system_prompt: str | None = None,
        images: list[str] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Generate completion from prompt.

        Args:
            prompt: User prompt.
            model: Model name without provider prefix.
            system_prompt: Optional system prompt.
            images: Optional base64-encoded images attached to the user message.
            temperature: Sampling temperature.
            max_tokens: Maximum response tokens.

        Returns:
            Generated text response (may be empty).

        Raises:
            LLMError: Subclass matching the failure; transient ones carry
                ErrorKind.TRANSIENT.
        """
        messages: list[dict[str, Any]] = []

        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        if images:
            content: Any = [{"type": "text", "text": prompt}] + [
                {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image}"}}
                for image in images
            ]
        else:
            content = prompt
        messages.append({"role": "user", "content": content})

        kwargs = self._base_kwargs(model)
        kwargs["messages"] = messages
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        start_time = time.perf_counter()
        try:
            response = await asyncio.wait_for(acompletion(**kwargs), timeout=self.timeout)
            result: str = str(response.choices[0].message.content or "")
        except _PROVIDER_ERRORS as e:
            error = self._translate_error(e)
            self._log_query(
                "chat",
                model,
                prompt,
                len(images or []),
                response=None,
                duration_ms=int((time.perf_counter() - start_time) * 1000),
                error=str(error),
            )
            raise error from e

        self._log_query(
            "chat",
            model,
            prompt,
            len(images or []),
            response=result,
            duration_ms=int((time.perf_counter() - start_time) * 1000),
            error=None,
        )
        return result

    async def embed(self, text: str, model: str) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed.
            model: Embedding model name without provider prefix.

        Returns:
            The embedding vector (empty if the provider returned none).

        Raises:
            LLMError: Subclass matching the failure.
        """
        kwargs = self._base_kwargs(model)
        kwargs["input"] = [text]

        start_time = time.perf_counter()
        try:
            response = await asyncio.wait_for(aembedding(**kwargs), timeout=self.timeout)
        except _PROVIDER_ERRORS as e:
            error = self._translate_error(e)
            self._log_query(
                "embedding",
                model,
                text,
                0,
                response=None,
                duration_ms=int((time.perf_counter() - start_time) * 1000),
                error=str(error),
            )
            raise error from e

        vector: list[float] = []
        if response.data:
            item = response.data[0]
            # LiteLLM returns plain dicts for some providers, objects for others
            raw = item["embedding"] if isinstance(item, dict) else item.embedding
            vector = [float(v) for v in raw or []]

        self._log_query(
            "embedding",
            model,
            text,
            0,
            response=f"<{len(vector)} floats>",
            duration_ms=int((time.perf_counter() - start_time) * 1000),
            error=None,
        )
        return vector
