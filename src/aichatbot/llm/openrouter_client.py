"""OpenRouter provider client."""

import logging

from .base import AIProvider, ModelInfo, ProviderBalance
from .chat_completions import ChatCompletionClient
from .pricing import OPENROUTER_BASELINE_MODEL, OPENROUTER_PRICING

logger = logging.getLogger(__name__)


class OpenRouterClient(ChatCompletionClient):
    """OpenRouter HTTP API client."""

    provider = AIProvider.OPENROUTER
    display_name = "OpenRouter"
    pricing = OPENROUTER_PRICING
    baseline_model = OPENROUTER_BASELINE_MODEL

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        default_model: str = OPENROUTER_BASELINE_MODEL,
        app_url: str = "https://github.com/spochipov/ai-chat-bot",
        app_title: str = "AI Chat Bot",
        **kwargs,
    ):
        # Attribution headers must exist before the HTTP client is built
        self.app_url = app_url
        self.app_title = app_title
        super().__init__(api_key, base_url, default_model, **kwargs)

    def _build_headers(self) -> dict[str, str]:
        headers = super()._build_headers()
        headers["HTTP-Referer"] = self.app_url
        headers["X-Title"] = self.app_title
        return headers

    def _convert_model(self, entry: dict) -> ModelInfo:
        architecture = entry.get("architecture") or {}
        return ModelInfo(
            id=entry["id"],
            name=entry.get("name"),
            description=entry.get("description"),
            provider=self.provider,
            extra={
                "pricing": entry.get("pricing"),
                "context_length": entry.get("context_length"),
                "modality": architecture.get("modality"),
            },
        )

    async def get_balance(self) -> ProviderBalance:
        """Get remaining credit and cumulative usage for the API key."""
        data = await self._request("GET", "/auth/key")
        info = data.get("data") if isinstance(data, dict) else None
        try:
            balance = ProviderBalance(
                credits=float(info.get("credits") or 0),
                usage=float(info.get("usage") or 0),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise self._invalid_response(f"malformed key info ({e})") from e
        logger.info(
            f"OpenRouter balance: credits=${balance.credits:.4f} usage=${balance.usage:.4f}"
        )
        return balance
