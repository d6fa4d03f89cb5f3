"""Aggregate numbers for a channel dashboard."""

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.models import Like, Subscription, User, Video
from vidtube.errors import NotFound


class DashboardService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_channel(self, channel_id: uuid.UUID) -> User:
        channel = await self.db.get(User, channel_id)
        if channel is None:
            raise NotFound("Channel not found")
        return channel

    async def channel_stats(self, channel_id: uuid.UUID) -> dict:
        """Totals across every video the channel owns, published or not."""
        await self._require_channel(channel_id)

        video_totals = await self.db.execute(
            select(func.count(Video.id), func.coalesce(func.sum(Video.views), 0)).where(
                Video.owner_id == channel_id
            )
        )
        total_videos, total_views = video_totals.one()
        total_likes = await self.db.scalar(
            select(func.count(Like.id))
            .join(Video, Video.id == Like.video_id)
            .where(Video.owner_id == channel_id)
        )
        total_subscribers = await self.db.scalar(
            select(func.count(Subscription.id)).where(Subscription.channel_id == channel_id)
        )
        return {
            "channel_id": channel_id,
            "total_videos": total_videos or 0,
            "total_views": int(total_views or 0),
            "total_likes": total_likes or 0,
            "total_subscribers": total_subscribers or 0,
        }

    async def channel_videos(
        self, channel_id: uuid.UUID, viewer_id: Optional[uuid.UUID]
    ) -> list[Video]:
        """Newest first. Unpublished videos are included only for the owner."""
        await self._require_channel(channel_id)
        query = select(Video).where(Video.owner_id == channel_id)
        if viewer_id != channel_id:
            query = query.where(Video.is_published.is_(True))
        result = await self.db.execute(query.order_by(Video.created_at.desc(), Video.id))
        return list(result.scalars().all())
