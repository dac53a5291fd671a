"""Model provider access: LiteLLM client, model admin, orchestration."""

from vista.llm.admin import ProviderAdmin
from vista.llm.client import LLMClient
from vista.llm.gateway import LiteLLMGateway, ModelGateway
from vista.llm.orchestrator import ModelOrchestrator, ModelSlot

__all__ = [
    "LLMClient",
    "LiteLLMGateway",
    "ModelGateway",
    "ModelOrchestrator",
    "ModelSlot",
    "ProviderAdmin",
]
