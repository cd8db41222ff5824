"""Usage ledger: append-only billing records and windowed totals."""

import logging
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from .models import RequestType, UsageAggregate, UsageRecord, UsageSummary
from .store import MemoryStore

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _local_midnight(now: datetime) -> datetime:
    """Start of the local calendar day containing ``now``.

    The UTC offset is the one in effect at midnight, not at ``now``.
    """
    return datetime.combine(now.astimezone().date(), time.min).astimezone()


class UsageLedger:
    """Records one usage entry per completed provider call.

    Window boundaries are computed each time a query runs. "Today" starts at
    local midnight, "last 30 days" is the 30 days up to now.
    """

    def __init__(self, store: MemoryStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._clock = clock or _local_now

    async def record(
        self,
        user_id: str,
        tokens: int,
        cost: float,
        model: str,
        request_type: RequestType = RequestType.TEXT,
    ) -> UsageRecord:
        """Append a usage record.

        Raises:
            ValueError: If tokens or cost is negative
        """
        if tokens < 0 or cost < 0:
            raise ValueError(f"Usage must be non-negative (tokens={tokens}, cost={cost})")

        record = await self.store.create_usage(
            UsageRecord(
                user_id=user_id,
                tokens=tokens,
                cost=cost,
                model=model,
                request_type=RequestType(request_type),
            )
        )
        logger.info(
            f"Recorded usage for user {user_id}: {tokens} tokens, "
            f"${cost:.6f}, model={model}, type={record.request_type.value}"
        )
        return record

    async def aggregate(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> UsageAggregate:
        """Totals between ``start`` and ``end``; missing bounds are open."""
        return await self.store.aggregate_usage(user_id=user_id, start=start, end=end)

    async def today(self, user_id: Optional[str] = None) -> UsageAggregate:
        now = self._clock()
        return await self.aggregate(start=_local_midnight(now), end=now, user_id=user_id)

    async def last_30_days(self, user_id: Optional[str] = None) -> UsageAggregate:
        now = self._clock()
        return await self.aggregate(start=now - timedelta(days=30), end=now, user_id=user_id)

    async def all_time(self, user_id: Optional[str] = None) -> UsageAggregate:
        return await self.aggregate(user_id=user_id)

    async def summary(self, user_id: Optional[str] = None) -> UsageSummary:
        return UsageSummary(
            today=await self.today(user_id),
            last_30_days=await self.last_30_days(user_id),
            all_time=await self.all_time(user_id),
        )

    async def recent(self, user_id: str, limit: int = 10) -> list[UsageRecord]:
        return await self.store.list_usage(user_id=user_id, limit=limit)
