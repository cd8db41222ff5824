"""Base provider client interface and the normalized message types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Optional, Union


class AIProvider(str, Enum):
    """Supported LLM backends."""

    OPENROUTER = "openrouter"
    OPENAI = "openai"


# Fixed order used when looking for a healthy provider
PROVIDER_ORDER = [AIProvider.OPENROUTER, AIProvider.OPENAI]


@dataclass
class AIMessage:
    """Message in a conversation.

    ``content`` is either plain text or a list of parts such as
    ``{"type": "text", "text": ...}`` and
    ``{"type": "image_url", "image_url": {"url": ...}}``.
    """

    role: str
    content: Union[str, list[dict[str, Any]]]

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class TokenUsage:
    """Token counts reported by the provider for one call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class AIResponse:
    """Response from a provider."""

    content: str
    usage: TokenUsage
    model: str
    provider: Optional[AIProvider] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["provider"] = self.provider.value if self.provider else None
        return data


@dataclass
class RequestOptions:
    """Per-request overrides; unset values fall back to client defaults."""

    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    # Explicit provider; disables automatic failover in the router
    provider: Optional[AIProvider] = None


@dataclass
class ModelInfo:
    """Entry of a provider's model catalog."""

    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    provider: Optional[AIProvider] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProviderBalance:
    """Account credit as reported by the provider, in USD."""

    credits: float
    usage: float

    @property
    def remaining(self) -> float:
        return self.credits - self.usage


class ProviderClient(ABC):
    """Abstract base class for provider clients."""

    provider: AIProvider

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model used when a request does not name one."""

    @abstractmethod
    def set_default_model(self, model: str) -> None:
        """Change the default model for subsequent requests."""

    @abstractmethod
    async def send_message(
        self,
        messages: list[AIMessage],
        options: Optional[RequestOptions] = None,
    ) -> AIResponse:
        """Send a chat completion request."""

    @abstractmethod
    async def get_models(self) -> list[ModelInfo]:
        """Return the provider's model catalog."""

    @abstractmethod
    def calculate_cost(
        self, prompt_tokens: int, completion_tokens: int, model: Optional[str] = None
    ) -> float:
        """Estimate the cost of a call in USD."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True if the provider answers a lightweight request."""

    async def analyze_image(
        self,
        image_url: str,
        prompt: str = "Describe this image in detail",
        model: Optional[str] = None,
    ) -> AIResponse:
        """Ask a vision-capable model about one image."""
        messages = [
            AIMessage(
                role="user",
                content=[
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            )
        ]
        return await self.send_message(messages, RequestOptions(model=model))

    async def process_text_file(
        self,
        content: str,
        prompt: str = "Analyze this document and provide a summary",
        model: Optional[str] = None,
    ) -> AIResponse:
        """Run a prompt over the text of a document."""
        messages = [
            AIMessage(role="user", content=f"{prompt}\n\nDocument content:\n{content}")
        ]
        return await self.send_message(messages, RequestOptions(model=model))

    async def aclose(self) -> None:
        """Release network resources held by the client."""
