"""Provider router: picks a provider, fails over once, dispatches helpers."""

import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional, Union

from .base import (
    PROVIDER_ORDER,
    AIMessage,
    AIProvider,
    AIResponse,
    ModelInfo,
    ProviderBalance,
    ProviderClient,
    RequestOptions,
)
from .errors import (
    BadRequestError,
    NoProvidersAvailableError,
    ProviderError,
    UnsupportedOperationError,
)
from .openai_client import OpenAIClient
from .openrouter_client import OpenRouterClient
from .pricing import (
    OPENAI_BASELINE_MODEL,
    OPENAI_PRICING,
    OPENROUTER_BASELINE_MODEL,
    OPENROUTER_PRICING,
    calculate_cost,
)

logger = logging.getLogger(__name__)

# Vision-capable model used for image turns when the caller names none
VISION_MODELS = {
    AIProvider.OPENROUTER: "openai/gpt-4o",
    AIProvider.OPENAI: "gpt-4o",
}

PRICING_TABLES = {
    AIProvider.OPENROUTER: (OPENROUTER_PRICING, OPENROUTER_BASELINE_MODEL),
    AIProvider.OPENAI: (OPENAI_PRICING, OPENAI_BASELINE_MODEL),
}

ProviderCall = Callable[[ProviderClient, AIProvider], Awaitable[AIResponse]]


def _parse_provider(value: Union[str, AIProvider, None]) -> Optional[AIProvider]:
    if value is None:
        return None
    try:
        return AIProvider(value)
    except ValueError:
        return None


class AIService:
    """One provider-agnostic surface over the configured provider clients.

    The default provider and default models are process-wide state owned by
    this object. They are changed without locking: a request that resolved
    its provider just before a switch still finishes on the old one.
    """

    def __init__(
        self,
        clients: dict[AIProvider, ProviderClient],
        default_provider: Union[str, AIProvider] = AIProvider.OPENROUTER,
    ):
        if not clients:
            raise ValueError("At least one provider client is required")
        self.clients = dict(clients)
        self._default_provider = _parse_provider(default_provider) or AIProvider.OPENROUTER

    # Default provider / model

    def get_default_provider(self) -> AIProvider:
        """Return the provider used when a request names none.

        The AI_PROVIDER environment variable wins over the runtime setting.
        """
        return self.env_override() or self._default_provider

    def env_override(self) -> Optional[AIProvider]:
        """The configured provider named by AI_PROVIDER, if any."""
        env_provider = _parse_provider(os.getenv("AI_PROVIDER"))
        if env_provider is not None and env_provider in self.clients:
            return env_provider
        return None

    def set_default_provider(self, provider: Union[str, AIProvider]) -> None:
        parsed = _parse_provider(provider)
        if parsed is None:
            raise ValueError(f"Unsupported AI provider: {provider}")
        logger.info(f"Default provider changed to {parsed.value}")
        self._default_provider = parsed

    def get_default_model(self, provider: Optional[AIProvider] = None) -> str:
        target = provider or self.get_default_provider()
        client = self.clients.get(target)
        if client is None:
            return PRICING_TABLES[target][1]
        return client.default_model

    def set_default_model(self, model: str, provider: Optional[AIProvider] = None) -> None:
        target = provider or self.get_default_provider()
        self._client_for(target).set_default_model(model)

    # Availability

    async def is_provider_available(self, provider: Union[str, AIProvider]) -> bool:
        """Run the provider's health check; unknown providers are unavailable."""
        parsed = _parse_provider(provider)
        client = self.clients.get(parsed) if parsed else None
        if client is None:
            return False
        try:
            return await client.health_check()
        except Exception as e:
            logger.error(f"Provider {parsed.value} is not available: {e}")
            return False

    async def get_available_provider(
        self, preferred: Optional[AIProvider] = None
    ) -> AIProvider:
        """Return the first healthy provider, trying ``preferred`` first.

        Raises:
            NoProvidersAvailableError: If no provider passes its health check
        """
        first = preferred or self.get_default_provider()
        candidates = [first] + [p for p in PROVIDER_ORDER if p != first]

        for provider in candidates:
            if await self.is_provider_available(provider):
                return provider

        raise NoProvidersAvailableError("No AI providers are available")

    async def health_check_all(self) -> dict[str, bool]:
        """Check every provider concurrently; a crashed check counts as False."""
        results = await asyncio.gather(
            *(self._health_check(provider) for provider in PROVIDER_ORDER),
            return_exceptions=True,
        )

        status = {}
        for provider, result in zip(PROVIDER_ORDER, results):
            if isinstance(result, BaseException):
                logger.error(f"Health check for {provider.value} crashed: {result}")
            status[provider.value] = result is True
        return status

    async def _health_check(self, provider: AIProvider) -> bool:
        client = self.clients.get(provider)
        if client is None:
            return False
        return await client.health_check()

    # Requests

    async def send_message(
        self,
        messages: list[AIMessage],
        options: Optional[RequestOptions] = None,
    ) -> AIResponse:
        """Send a conversation to a provider, failing over once if allowed."""
        options = options or RequestOptions()

        async def call(client: ProviderClient, provider: AIProvider) -> AIResponse:
            logger.info(
                f"Sending message to {provider.value}: "
                f"messages={len(messages)} model={options.model or client.default_model}"
            )
            return await client.send_message(messages, options)

        return await self._dispatch("send message", options, call)

    async def analyze_image(
        self,
        image_url: str,
        prompt: str = "Describe this image in detail",
        options: Optional[RequestOptions] = None,
    ) -> AIResponse:
        options = options or RequestOptions()

        async def call(client: ProviderClient, provider: AIProvider) -> AIResponse:
            model = options.model or VISION_MODELS[provider]
            return await client.analyze_image(image_url, prompt, model)

        return await self._dispatch("analyze image", options, call)

    async def process_text_file(
        self,
        content: str,
        prompt: str = "Analyze this document and provide a summary",
        options: Optional[RequestOptions] = None,
    ) -> AIResponse:
        options = options or RequestOptions()

        async def call(client: ProviderClient, provider: AIProvider) -> AIResponse:
            return await client.process_text_file(content, prompt, options.model)

        return await self._dispatch("process text file", options, call)

    async def _dispatch(
        self, operation: str, options: RequestOptions, call: ProviderCall
    ) -> AIResponse:
        """Run ``call`` on the resolved provider, with at most one failover.

        An explicit ``options.provider`` disables failover. Otherwise a
        failed call is retried once on the other provider, provided that
        provider is healthy and the failure was not a bad request.
        """
        explicit = options.provider is not None
        provider = options.provider or await self.get_available_provider()

        try:
            response = await call(self._client_for(provider), provider)
        except ProviderError as e:
            logger.error(f"Failed to {operation} via {provider.value}: {e}")

            if explicit or isinstance(e, BadRequestError):
                raise

            alternate = self._alternate(provider)
            if alternate is None or not await self.is_provider_available(alternate):
                raise

            logger.info(f"Trying alternative provider to {operation}: {alternate.value}")
            response = await call(self._client_for(alternate), alternate)
            provider = alternate

        response.provider = provider
        return response

    def _alternate(self, provider: AIProvider) -> Optional[AIProvider]:
        for candidate in PROVIDER_ORDER:
            if candidate != provider and candidate in self.clients:
                return candidate
        return None

    def _client_for(self, provider: AIProvider) -> ProviderClient:
        client = self.clients.get(provider)
        if client is None:
            raise UnsupportedOperationError(f"Provider {provider.value} is not configured")
        return client

    # Pass-through helpers

    async def get_models(self, provider: Optional[AIProvider] = None) -> list[ModelInfo]:
        target = provider or await self.get_available_provider()
        models = await self._client_for(target).get_models()
        for model in models:
            model.provider = target
        return models

    async def get_balance(self, provider: AIProvider = AIProvider.OPENROUTER) -> ProviderBalance:
        """Return account balance for providers that report one.

        Raises:
            UnsupportedOperationError: If the provider has no balance endpoint
        """
        client = self._client_for(provider)
        get_balance = getattr(client, "get_balance", None)
        if get_balance is None:
            raise UnsupportedOperationError(
                f"Provider {provider.value} does not report an account balance"
            )
        return await get_balance()

    def calculate_cost(
        self,
        prompt_tokens: int,
        completion_tokens: int,
        model: str,
        provider: Union[str, AIProvider, None],
    ) -> float:
        """Price a call with the provider's table; unknown providers cost 0."""
        parsed = _parse_provider(provider)
        if parsed is None:
            return 0.0

        client = self.clients.get(parsed)
        if client is not None:
            return client.calculate_cost(prompt_tokens, completion_tokens, model)

        pricing, baseline = PRICING_TABLES[parsed]
        return calculate_cost(pricing, baseline, prompt_tokens, completion_tokens, model)

    async def aclose(self) -> None:
        for client in self.clients.values():
            await client.aclose()


def build_ai_service(settings) -> AIService:
    """Construct the router with a client for every provider that has a key."""
    common = {
        "max_tokens": settings.default_max_tokens,
        "temperature": settings.default_temperature,
        "timeout": settings.request_timeout_seconds,
        "health_check_timeout": settings.health_check_timeout_seconds,
    }

    clients: dict[AIProvider, ProviderClient] = {}
    if settings.openrouter_api_key:
        clients[AIProvider.OPENROUTER] = OpenRouterClient(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            default_model=settings.openrouter_model,
            app_url=settings.app_url,
            app_title=settings.app_title,
            **common,
        )
    if settings.openai_api_key:
        clients[AIProvider.OPENAI] = OpenAIClient(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            default_model=settings.openai_model,
            **common,
        )

    if not clients:
        raise ValueError("OPENROUTER_API_KEY or OPENAI_API_KEY is required")

    return AIService(clients, default_provider=settings.ai_provider)
