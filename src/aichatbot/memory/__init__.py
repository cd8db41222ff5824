"""Persistence layer for aichatbot."""

from .store import MemoryStore
from .ledger import UsageLedger
from .models import (
    Message,
    MessageRole,
    RequestType,
    UsageAggregate,
    UsageRecord,
    UsageSummary,
)

__all__ = [
    "MemoryStore",
    "UsageLedger",
    "Message",
    "MessageRole",
    "RequestType",
    "UsageAggregate",
    "UsageRecord",
    "UsageSummary",
]
