"""Bounded conversation context assembled from stored messages."""

import logging
from typing import Optional

from ..config import settings
from ..llm import AIMessage
from ..memory import Message, MessageRole, MemoryStore
from .prompts import CHAT_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

MAX_CONTEXT_SETTING = "max_context_messages"


def to_ai_messages(records: list[Message]) -> list[AIMessage]:
    """Convert stored messages to provider messages, keeping their order."""
    return [AIMessage(role=record.role.value, content=record.content) for record in records]


class ContextManager:
    """Builds the message list sent to a provider for one user turn.

    The result is one system message followed by at most N stored messages
    in oldest-to-newest order, where N is the ``max_context_messages``
    setting. Older turns stay in storage but are left out of the context.
    """

    def __init__(self, store: MemoryStore, default_limit: Optional[int] = None):
        self.store = store
        self.default_limit = (
            default_limit if default_limit is not None else settings.max_context_messages
        )

    async def get_limit(self) -> int:
        """Read the context size from the settings table."""
        raw = await self.store.get_setting(MAX_CONTEXT_SETTING)
        if raw is None:
            return self.default_limit
        try:
            return max(int(raw), 0)
        except ValueError:
            logger.warning(f"Ignoring invalid {MAX_CONTEXT_SETTING} setting: {raw!r}")
            return self.default_limit

    async def build_context(
        self,
        user_id: str,
        system_prompt: Optional[str] = None,
        pending: Optional[AIMessage] = None,
    ) -> list[AIMessage]:
        """Assemble the context for a user.

        Args:
            user_id: Owner of the conversation
            system_prompt: Instruction message; defaults to the chat persona
            pending: New user turn appended after the history, not counted
                against the limit

        Returns:
            System message, history oldest first, then ``pending`` if given
        """
        limit = await self.get_limit()
        history = await self.store.list_recent_messages(user_id, limit) if limit else []

        # Storage returns newest first; providers need oldest to newest.
        # Sorting the reversed list keeps equal timestamps in insertion order.
        history = sorted(reversed(history), key=lambda m: m.created_at)[-limit:] if limit else []

        messages = [
            AIMessage(role=MessageRole.SYSTEM.value, content=system_prompt or CHAT_SYSTEM_PROMPT)
        ]
        messages.extend(to_ai_messages(history))
        if pending is not None:
            messages.append(pending)

        logger.debug(
            f"Built context for user {user_id}: {len(history)} history messages (limit {limit})"
        )
        return messages

    async def clear(self, user_id: str) -> int:
        """Delete the user's stored conversation."""
        deleted = await self.store.delete_messages(user_id)
        logger.info(f"Cleared {deleted} messages for user {user_id}")
        return deleted
