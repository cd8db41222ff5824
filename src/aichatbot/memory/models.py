"""Data models for the persistence layer."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class RequestType(str, Enum):
    """What kind of request a usage record bills for."""

    TEXT = "text"
    FILE = "file"
    FORWARD = "forward"
    IMAGE = "image"


class Message(BaseModel):
    """One stored conversation turn. Never updated once written."""

    id: str = ""
    user_id: str
    role: MessageRole
    content: str
    tokens: Optional[int] = None
    cost: Optional[float] = None
    file_url: Optional[str] = None  # image URL or stored file path
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    created_at: datetime = Field(default_factory=_utc_now)


class UsageRecord(BaseModel):
    """One billed provider call.

    Cost is a snapshot taken when the call completed; it is not recomputed
    when pricing changes.
    """

    id: str = ""
    user_id: str
    tokens: int = Field(ge=0)
    cost: float = Field(ge=0)
    model: str
    request_type: RequestType = RequestType.TEXT
    created_at: datetime = Field(default_factory=_utc_now)


class UsageAggregate(BaseModel):
    """Totals over a set of usage records."""

    count: int = 0
    tokens: int = 0
    cost: float = 0.0

    @property
    def average_cost(self) -> float:
        return self.cost / self.count if self.count else 0.0


class UsageSummary(BaseModel):
    """Usage totals over the standard reporting windows."""

    today: UsageAggregate
    last_30_days: UsageAggregate
    all_time: UsageAggregate
