"""Chat assistant back end with OpenRouter/OpenAI failover and usage accounting."""

__version__ = "0.1.0"
