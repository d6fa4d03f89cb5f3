"""Subscription service: follow/unfollow channels and list both directions.

A channel is just a user. Toggling is read-then-write like likes, with
the same accepted race and the same IntegrityError handling.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.models import Subscription, User
from vidtube.errors import NotFound, ValidationError

logger = structlog.get_logger()


class SubscriptionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_user(self, user_id: uuid.UUID, what: str = "Channel") -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFound(f"{what} not found")
        return user

    async def _find(
        self, channel_id: uuid.UUID, subscriber_id: uuid.UUID
    ) -> Optional[Subscription]:
        result = await self.db.execute(
            select(Subscription).where(
                Subscription.channel_id == channel_id,
                Subscription.subscriber_id == subscriber_id,
            )
        )
        return result.scalars().first()

    async def toggle(self, channel_id: uuid.UUID, subscriber_id: uuid.UUID) -> tuple[bool, int]:
        """Returns (subscribed_now, subscribers_count_after)."""
        await self._require_user(channel_id)
        if channel_id == subscriber_id:
            raise ValidationError("You cannot subscribe to your own channel")

        existing = await self._find(channel_id, subscriber_id)
        if existing:
            await self.db.delete(existing)
            subscribed = False
        else:
            self.db.add(Subscription(channel_id=channel_id, subscriber_id=subscriber_id))
            subscribed = True
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent toggle subscribed first.
            await self.db.rollback()
            subscribed = True

        count = await self.db.scalar(
            select(func.count(Subscription.id)).where(Subscription.channel_id == channel_id)
        )
        logger.info(
            "subscription.toggled",
            channel_id=str(channel_id),
            subscriber_id=str(subscriber_id),
            subscribed=subscribed,
        )
        return subscribed, count or 0

    async def subscribers(self, channel_id: uuid.UUID) -> list[User]:
        await self._require_user(channel_id)
        result = await self.db.execute(
            select(User)
            .join(Subscription, Subscription.subscriber_id == User.id)
            .where(Subscription.channel_id == channel_id)
            .order_by(Subscription.created_at.desc(), Subscription.id)
        )
        return list(result.scalars().all())

    async def subscribed_channels(self, subscriber_id: uuid.UUID) -> list[User]:
        await self._require_user(subscriber_id, "Subscriber")
        result = await self.db.execute(
            select(User)
            .join(Subscription, Subscription.channel_id == User.id)
            .where(Subscription.subscriber_id == subscriber_id)
            .order_by(Subscription.created_at.desc(), Subscription.id)
        )
        return list(result.scalars().all())
