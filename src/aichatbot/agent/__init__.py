"""Chat orchestration for aichatbot."""

from .chat import ChatResult, ChatService, describe_error
from .services import BotServices

__all__ = ["BotServices", "ChatResult", "ChatService", "describe_error"]
