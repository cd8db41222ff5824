"""Chat orchestration: context, provider call, persistence and billing."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..config import settings
from ..conversation import (
    DOCUMENT_PROMPT,
    FORWARD_SYSTEM_PROMPT,
    IMAGE_PROMPT,
    ContextManager,
)
from ..llm import (
    AIMessage,
    AIProvider,
    AIResponse,
    AIService,
    AuthError,
    BadRequestError,
    NoProvidersAvailableError,
    ProviderError,
    RateLimitedError,
    RequestOptions,
    UnavailableError,
)
from ..memory import MemoryStore, Message, MessageRole, RequestType, UsageLedger

logger = logging.getLogger(__name__)

LOG_INPUT_CHARS = 100
TRUNCATION_MARKER = "\n\n[... content truncated because of its size ...]"


def _truncate(text: str, limit: int = LOG_INPUT_CHARS) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


@dataclass
class ChatResult:
    """What the caller needs to render a reply."""

    content: str
    tokens: int
    cost: float
    model: str
    provider: Optional[AIProvider]
    # False when the reply was produced but could not be stored
    recorded: bool = True


def describe_error(error: Exception) -> str:
    """Translate a provider failure into a message for the end user."""
    if isinstance(error, RateLimitedError):
        return "Too many requests right now. Please wait a few minutes and try again."
    if isinstance(error, AuthError):
        return "The AI service is misconfigured. Please contact the administrator."
    if isinstance(error, (UnavailableError, NoProvidersAvailableError)):
        return "The AI service is temporarily unavailable. Please try again later."
    if isinstance(error, BadRequestError):
        return error.message
    return "An error occurred while processing your request. Please try again later."


class ChatService:
    """Runs one user turn end to end.

    Usage is recorded only after a provider returned content. Storage
    failures after that point are logged and not retried, so accounting is
    at most once.
    """

    def __init__(
        self,
        ai_service: AIService,
        store: MemoryStore,
        context: Optional[ContextManager] = None,
        ledger: Optional[UsageLedger] = None,
        max_document_chars: Optional[int] = None,
    ):
        self.ai_service = ai_service
        self.store = store
        self.context = context or ContextManager(store)
        self.ledger = ledger or UsageLedger(store)
        self.max_document_chars = max_document_chars or settings.max_document_chars

    async def process_message(
        self,
        user_id: str,
        text: str,
        request_type: RequestType = RequestType.TEXT,
        provider: Optional[AIProvider] = None,
        system_prompt: Optional[str] = None,
    ) -> ChatResult:
        """Answer a text turn using the user's recent history."""
        if system_prompt is None and request_type == RequestType.FORWARD:
            system_prompt = FORWARD_SYSTEM_PROMPT

        messages = await self.context.build_context(
            user_id,
            system_prompt=system_prompt,
            pending=AIMessage(role=MessageRole.USER.value, content=text),
        )

        try:
            response = await self.ai_service.send_message(
                messages, RequestOptions(provider=provider)
            )
        except (ProviderError, NoProvidersAvailableError) as e:
            self._log_failure("message", user_id, provider, text, e)
            raise

        user_message = Message(user_id=user_id, role=MessageRole.USER, content=text)
        return await self._persist(user_id, user_message, response, request_type)

    async def process_document(
        self,
        user_id: str,
        file_name: str,
        content: str,
        prompt: Optional[str] = None,
        file_url: Optional[str] = None,
        file_type: Optional[str] = None,
        provider: Optional[AIProvider] = None,
    ) -> ChatResult:
        """Run a prompt over an uploaded text document."""
        if len(content) > self.max_document_chars:
            content = content[: self.max_document_chars] + TRUNCATION_MARKER

        try:
            response = await self.ai_service.process_text_file(
                f'File "{file_name}":\n\n{content}',
                prompt or DOCUMENT_PROMPT,
                RequestOptions(provider=provider),
            )
        except (ProviderError, NoProvidersAvailableError) as e:
            self._log_failure("document", user_id, provider, prompt or file_name, e)
            raise

        user_message = Message(
            user_id=user_id,
            role=MessageRole.USER,
            content=prompt or "File for analysis",
            file_url=file_url,
            file_name=file_name,
            file_type=file_type,
        )
        return await self._persist(user_id, user_message, response, RequestType.FILE)

    async def analyze_image(
        self,
        user_id: str,
        image_url: str,
        prompt: Optional[str] = None,
        provider: Optional[AIProvider] = None,
    ) -> ChatResult:
        """Ask a vision model about an uploaded image."""
        try:
            response = await self.ai_service.analyze_image(
                image_url, prompt or IMAGE_PROMPT, RequestOptions(provider=provider)
            )
        except (ProviderError, NoProvidersAvailableError) as e:
            self._log_failure("image", user_id, provider, prompt or image_url, e)
            raise

        user_message = Message(
            user_id=user_id,
            role=MessageRole.USER,
            content=prompt or "Image for analysis",
            file_url=image_url,
            file_type="image",
        )
        return await self._persist(user_id, user_message, response, RequestType.IMAGE)

    async def clear_history(self, user_id: str) -> int:
        return await self.context.clear(user_id)

    async def _persist(
        self,
        user_id: str,
        user_message: Message,
        response: AIResponse,
        request_type: RequestType,
    ) -> ChatResult:
        usage = response.usage
        cost = self.ai_service.calculate_cost(
            usage.prompt_tokens, usage.completion_tokens, response.model, response.provider
        )
        result = ChatResult(
            content=response.content,
            tokens=usage.total_tokens,
            cost=cost,
            model=response.model,
            provider=response.provider,
        )

        try:
            await self.store.create_message(user_message)
            await self.store.create_message(
                Message(
                    user_id=user_id,
                    role=MessageRole.ASSISTANT,
                    content=response.content,
                    tokens=usage.total_tokens,
                    cost=cost,
                )
            )
            await self.ledger.record(
                user_id, usage.total_tokens, cost, response.model, request_type
            )
        except Exception as e:
            logger.error(
                f"Failed to store {request_type.value} turn for user {user_id} "
                f"after a successful provider call: {e}",
                exc_info=True,
            )
            result.recorded = False

        logger.info(
            f"Processed {request_type.value} request for user {user_id}: "
            f"provider={response.provider.value if response.provider else None} "
            f"model={response.model} tokens={usage.total_tokens} cost=${cost:.6f}"
        )
        return result

    def _log_failure(
        self,
        kind: str,
        user_id: str,
        provider: Optional[AIProvider],
        text: str,
        error: Exception,
    ) -> None:
        logger.error(
            f"Failed to process {kind} for user {user_id} "
            f"(provider={provider.value if provider else 'auto'}, "
            f"input={_truncate(text)!r}): {error}"
        )
