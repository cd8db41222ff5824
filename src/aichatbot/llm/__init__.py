"""LLM provider clients and the provider router."""

from .base import (
    AIMessage,
    AIProvider,
    AIResponse,
    ModelInfo,
    ProviderBalance,
    ProviderClient,
    RequestOptions,
    TokenUsage,
)
from .errors import (
    AuthError,
    BadRequestError,
    InvalidResponseError,
    NoProvidersAvailableError,
    ProviderError,
    RateLimitedError,
    UnavailableError,
    UnknownProviderError,
    UnsupportedOperationError,
)
from .openai_client import OpenAIClient
from .openrouter_client import OpenRouterClient
from .router import AIService, build_ai_service

__all__ = [
    "AIMessage",
    "AIProvider",
    "AIResponse",
    "ModelInfo",
    "ProviderBalance",
    "ProviderClient",
    "RequestOptions",
    "TokenUsage",
    "AuthError",
    "BadRequestError",
    "InvalidResponseError",
    "NoProvidersAvailableError",
    "ProviderError",
    "RateLimitedError",
    "UnavailableError",
    "UnknownProviderError",
    "UnsupportedOperationError",
    "OpenAIClient",
    "OpenRouterClient",
    "AIService",
    "build_ai_service",
]
