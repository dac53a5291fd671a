"""Coordination of which generative capability is resident on the provider.

Large vision, embedding and summarization models rarely fit in accelerator
memory together. The orchestrator keeps a single "currently loaded" pointer
and, when auto-flush is on, evicts everything before a different capability
is used. It is advisory: a failed unload is logged and the caller proceeds.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from vista.constants.llm import SETTLE_INTERVAL_SECONDS
from vista.errors import VistaError
from vista.models import Capability

logger = logging.getLogger(__name__)


class ModelAdmin(Protocol):
    """Provider operations the orchestrator needs."""

    async def list_loaded(self) -> list[str]: ...

    async def unload(self, model: str) -> None: ...


@dataclass
class ModelSlot:
    """The loaded-capability pointer and the lock guarding its transitions."""

    current: Capability | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class ModelOrchestrator:
    """Single-writer state machine over a ModelSlot."""

    def __init__(
        self,
        admin: ModelAdmin,
        slot: ModelSlot | None = None,
        auto_flush: bool = True,
        settle_interval: float = SETTLE_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            admin: Provider client able to list and unload resident models.
            slot: State to manage; a fresh one is created when omitted.
            auto_flush: Evict resident models whenever the capability changes.
            settle_interval: Seconds to wait after a flush before proceeding.
        """
        self._admin = admin
        self._slot = slot or ModelSlot()
        self.auto_flush = auto_flush
        self.settle_interval = settle_interval

    @property
    def current(self) -> Capability | None:
        return self._slot.current

    async def ensure_loaded(self, capability: Capability) -> None:
        """Make ``capability`` the current one, flushing first if configured.

        Concurrent callers serialize on the slot lock; whichever runs last
        owns the pointer.
        """
        async with self._slot.lock:
            if self._slot.current == capability:
                return

            if self.auto_flush:
                previous = self._slot.current
                logger.info(
                    f"Switching model capability {previous.value if previous else 'none'}"
                    f" -> {capability.value}"
                )
                await self._unload_all()
                if self.settle_interval > 0:
                    await asyncio.sleep(self.settle_interval)

            self._slot.current = capability

    async def flush_all(self) -> bool:
        """Unload every resident model and clear the pointer.

        Returns:
            True only if listing and every unload succeeded.
        """
        async with self._slot.lock:
            ok = await self._unload_all()
            self._slot.current = None
            return ok

    async def _unload_all(self) -> bool:
        try:
            loaded = await self._admin.list_loaded()
        except VistaError as e:
            logger.warning(f"Could not list resident models: {e}")
            return False

        ok = True
        for model in loaded:
            try:
                await self._admin.unload(model)
            except VistaError as e:
                logger.warning(f"Failed to unload {model}: {e}")
                ok = False
        return ok
