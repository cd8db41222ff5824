"""Conversation context assembly."""

from .context import MAX_CONTEXT_SETTING, ContextManager, to_ai_messages
from .prompts import CHAT_SYSTEM_PROMPT, DOCUMENT_PROMPT, FORWARD_SYSTEM_PROMPT, IMAGE_PROMPT

__all__ = [
    "MAX_CONTEXT_SETTING",
    "ContextManager",
    "to_ai_messages",
    "CHAT_SYSTEM_PROMPT",
    "DOCUMENT_PROMPT",
    "FORWARD_SYSTEM_PROMPT",
    "IMAGE_PROMPT",
]
