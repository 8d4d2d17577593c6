"""Sliding-window daily cap on join requests per studio.

Recomputed from membership rows on every call; no counter is persisted.
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_app.models.enums import MembershipStatus
from studio_app.models.studio_membership import StudioMembership

DAILY_JOIN_REQUEST_LIMIT = 10
JOIN_LIMIT_WINDOW_MS = 24 * 60 * 60 * 1000

# Removed rows do not count against the cap.
COUNTABLE_STATUSES = (
    MembershipStatus.PENDING,
    MembershipStatus.DENIED,
    MembershipStatus.APPROVED,
)


@dataclass(frozen=True)
class JoinLimitStatus:
    recent_count: int
    daily_limit: int
    window_ms: int
    limit_reached: bool


def utcnow() -> datetime:
    return datetime.now(UTC)


class JoinRateLimiter:
    def __init__(
        self,
        db: AsyncSession,
        daily_limit: int = DAILY_JOIN_REQUEST_LIMIT,
        window_ms: int = JOIN_LIMIT_WINDOW_MS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.daily_limit = daily_limit
        self.window_ms = window_ms
        self.clock = clock

    async def get_join_limit_status(self, studio_id: uuid.UUID) -> JoinLimitStatus:
        window_start = self.clock() - timedelta(milliseconds=self.window_ms)

        recent_count = await self.db.scalar(
            select(func.count())
            .select_from(StudioMembership)
            .where(
                StudioMembership.studio_id == studio_id,
                StudioMembership.status.in_(COUNTABLE_STATUSES),
                StudioMembership.created_at >= window_start,
            )
        )
        recent_count = recent_count or 0

        return JoinLimitStatus(
            recent_count=recent_count,
            daily_limit=self.daily_limit,
            window_ms=self.window_ms,
            limit_reached=recent_count >= self.daily_limit,
        )
