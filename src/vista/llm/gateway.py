"""Describe/embed/summarize gateway in front of the model provider."""

import asyncio
import base64
from pathlib import Path
from typing import Protocol

from vista.config import Config
from vista.errors import (
    DescriptionUnavailable,
    EmbeddingUnavailable,
    SummarizationUnavailable,
)
from vista.llm.client import LLMClient
from vista.llm.orchestrator import ModelOrchestrator
from vista.llm.prompts import DESCRIBE_IMAGE_PROMPT, format_summary_prompt
from vista.models import Capability, QueryResult
from vista.retry import with_retry


class ModelGateway(Protocol):
    """The three provider capabilities the core depends on."""

    async def describe(self, content_ref: str) -> str: ...

    async def embed(self, text: str) -> list[float]: ...

    async def summarize(self, query: str, results: list[QueryResult]) -> str: ...


class LiteLLMGateway:
    """ModelGateway backed by LLMClient.

    Each call first asks the orchestrator to make its capability resident,
    then runs the provider request under the retry policy.
    """

    def __init__(
        self,
        client: LLMClient,
        orchestrator: ModelOrchestrator,
        vision_model: str,
        embedding_model: str,
        summarization_model: str,
        max_attempts: int = 3,
        base_delay: float = 1.0,
    ) -> None:
        self._client = client
        self._orchestrator = orchestrator
        self.vision_model = vision_model
        self.embedding_model = embedding_model
        self.summarization_model = summarization_model
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    @classmethod
    def from_config(
        cls, config: Config, client: LLMClient, orchestrator: ModelOrchestrator
    ) -> "LiteLLMGateway":
        return cls(
            client=client,
            orchestrator=orchestrator,
            vision_model=config.models.vision_model,
            embedding_model=config.models.embedding_model,
            summarization_model=config.models.summarization_model,
            max_attempts=config.retry.max_attempts,
            base_delay=config.retry.base_delay_seconds,
        )

    async def describe(self, content_ref: str) -> str:
        """Describe the image at ``content_ref`` (a file path)."""
        try:
            raw = await asyncio.to_thread(Path(content_ref).read_bytes)
        except OSError as e:
            raise DescriptionUnavailable(f"Cannot read image {content_ref}: {e}") from e
        image = base64.b64encode(raw).decode("ascii")

        await self._orchestrator.ensure_loaded(Capability.VISION)
        description = await with_retry(
            lambda: self._client.generate(
                DESCRIBE_IMAGE_PROMPT, model=self.vision_model, images=[image]
            ),
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            operation_name=f"describe {Path(content_ref).name}",
        )
        description = description.strip()
        if not description:
            raise DescriptionUnavailable(f"Empty description for {content_ref}")
        return description

    async def embed(self, text: str) -> list[float]:
        await self._orchestrator.ensure_loaded(Capability.EMBEDDING)
        vector = await with_retry(
            lambda: self._client.embed(text, model=self.embedding_model),
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            operation_name="embed",
        )
        if not vector:
            raise EmbeddingUnavailable("Provider returned an empty embedding")
        return vector

    async def summarize(self, query: str, results: list[QueryResult]) -> str:
        """Summarize ``results`` for ``query``; results are used as given."""
        prompt = format_summary_prompt(query, results)

        await self._orchestrator.ensure_loaded(Capability.SUMMARIZATION)
        summary = await with_retry(
            lambda: self._client.generate(prompt, model=self.summarization_model),
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            operation_name="summarize",
        )
        summary = summary.strip()
        if not summary:
            raise SummarizationUnavailable("Provider returned an empty summary")
        return summary
