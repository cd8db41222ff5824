"""OpenAI provider client."""

from .base import AIProvider, ModelInfo
from .chat_completions import ChatCompletionClient
from .pricing import OPENAI_BASELINE_MODEL, OPENAI_PRICING


class OpenAIClient(ChatCompletionClient):
    """OpenAI HTTP API client."""

    provider = AIProvider.OPENAI
    display_name = "OpenAI"
    pricing = OPENAI_PRICING
    baseline_model = OPENAI_BASELINE_MODEL

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        default_model: str = OPENAI_BASELINE_MODEL,
        **kwargs,
    ):
        super().__init__(api_key, base_url, default_model, **kwargs)

    def _convert_model(self, entry: dict) -> ModelInfo:
        # The OpenAI catalog only carries ids
        return ModelInfo(
            id=entry["id"],
            name=entry["id"],
            description=f"OpenAI model: {entry['id']}",
            provider=self.provider,
            extra={"owned_by": entry.get("owned_by")},
        )
