"""Static per-model pricing tables.

Prices are USD per 1000 tokens as ``(prompt, completion)``. Models missing
from a table are charged at the table's baseline entry so that an unknown
model never looks cheaper than it probably is.
"""

from typing import Optional

OPENROUTER_PRICING = {
    "openai/gpt-4": (0.03, 0.06),
    "openai/gpt-4o": (0.005, 0.015),
    "openai/gpt-4-turbo": (0.01, 0.03),
    "openai/gpt-3.5-turbo": (0.001, 0.002),
}
OPENROUTER_BASELINE_MODEL = "openai/gpt-4"

OPENAI_PRICING = {
    "gpt-4": (0.03, 0.06),
    "gpt-4o": (0.005, 0.015),
    "gpt-4o-mini": (0.00015, 0.0006),
    "gpt-4-turbo": (0.01, 0.03),
    "gpt-3.5-turbo": (0.001, 0.002),
    "gpt-3.5-turbo-16k": (0.003, 0.004),
}
OPENAI_BASELINE_MODEL = "gpt-4"


def calculate_cost(
    pricing: dict[str, tuple[float, float]],
    baseline_model: str,
    prompt_tokens: int,
    completion_tokens: int,
    model: Optional[str] = None,
) -> float:
    """Calculate the cost of a call from a pricing table.

    Args:
        pricing: Mapping of model id to (prompt, completion) price per 1000 tokens
        baseline_model: Entry used for models absent from the table
        prompt_tokens: Number of prompt tokens
        completion_tokens: Number of completion tokens
        model: Model id reported for the call

    Returns:
        Cost in USD
    """
    prompt_price, completion_price = pricing.get(model or baseline_model, pricing[baseline_model])

    prompt_cost = (prompt_tokens / 1000) * prompt_price
    completion_cost = (completion_tokens / 1000) * completion_price

    return prompt_cost + completion_cost
