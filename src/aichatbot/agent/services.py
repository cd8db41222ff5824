"""Wiring of the store, provider router, ledger and chat service."""

import logging
from typing import Optional

from ..config import settings
from ..conversation import ContextManager
from ..llm import AIService, build_ai_service
from ..memory import MemoryStore, UsageLedger
from .chat import ChatService

logger = logging.getLogger(__name__)


class BotServices:
    """Owns the long-lived collaborators of one running process."""

    def __init__(
        self,
        store: Optional[MemoryStore] = None,
        ai_service: Optional[AIService] = None,
    ):
        self.store = store or MemoryStore()
        self.ai_service = ai_service or build_ai_service(settings)
        self.ledger = UsageLedger(self.store)
        self.context = ContextManager(self.store)
        self.chat = ChatService(self.ai_service, self.store, self.context, self.ledger)

    async def initialize(self):
        await self.store.initialize()
        logger.info(
            f"Services ready: providers={[p.value for p in self.ai_service.clients]}, "
            f"default={self.ai_service.get_default_provider().value}"
        )

    async def shutdown(self):
        await self.ai_service.aclose()
        await self.store.close()
