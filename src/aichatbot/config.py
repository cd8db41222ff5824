"""Configuration management for aichatbot."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _parse_cors_origins() -> list[str]:
    """Parse CORS origins from environment variable."""
    cors_env = os.getenv("CORS_ALLOW_ORIGINS")
    if cors_env:
        return cors_env.split(",")
    return ["*"]


class Settings(BaseModel):
    """Application settings."""

    # Default AI provider ('openrouter' or 'openai'); AI_PROVIDER also overrides at runtime
    ai_provider: str = os.getenv("AI_PROVIDER", "openrouter")

    # OpenRouter API configuration
    openrouter_api_key: Optional[str] = os.getenv("OPENROUTER_API_KEY")
    openrouter_base_url: str = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    openrouter_model: str = os.getenv("OPENROUTER_MODEL", "openai/gpt-4")

    # OpenAI API configuration
    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4")

    # Completion defaults shared by both providers
    default_max_tokens: int = int(os.getenv("DEFAULT_MAX_TOKENS", "4000"))
    default_temperature: float = float(os.getenv("DEFAULT_TEMPERATURE", "0.7"))

    # HTTP timeouts in seconds
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "60"))
    health_check_timeout_seconds: float = float(os.getenv("HEALTH_CHECK_TIMEOUT_SECONDS", "5"))

    # Attribution headers sent to OpenRouter
    app_url: str = os.getenv("APP_URL", "https://github.com/spochipov/ai-chat-bot")
    app_title: str = os.getenv("APP_TITLE", "AI Chat Bot")

    # Conversation context (the settings table value wins when present)
    max_context_messages: int = int(os.getenv("MAX_CONTEXT_MESSAGES", "20"))
    max_document_chars: int = int(os.getenv("MAX_DOCUMENT_CHARS", "50000"))

    # Database path for persistence
    database_path: Path = Path(os.getenv("DATABASE_PATH", "data/aichatbot.db"))

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS settings (comma-separated list of allowed origins, or * for all)
    cors_allow_origins: list[str] = _parse_cors_origins()


settings = Settings()
