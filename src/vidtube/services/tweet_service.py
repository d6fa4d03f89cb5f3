"""Tweets: short text posts on a user's channel."""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.policy import ensure_owner
from vidtube.db.models import Tweet, User
from vidtube.errors import NotFound


class TweetService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_tweet(self, owner_id: uuid.UUID, content: str) -> Tweet:
        tweet = Tweet(owner_id=owner_id, content=content)
        self.db.add(tweet)
        await self.db.commit()
        return tweet

    async def get_tweet(self, tweet_id: uuid.UUID) -> Optional[Tweet]:
        return await self.db.get(Tweet, tweet_id)

    async def list_user_tweets(self, username: str) -> list[Tweet]:
        """Newest first. Unknown username is a 404, not an empty list."""
        owner_id = await self.db.scalar(
            select(User.id).where(User.username == username.strip().lower())
        )
        if owner_id is None:
            raise NotFound("User not found")
        result = await self.db.execute(
            select(Tweet)
            .where(Tweet.owner_id == owner_id)
            .order_by(Tweet.created_at.desc(), Tweet.id)
        )
        return list(result.scalars().all())

    async def update_tweet(
        self, tweet_id: uuid.UUID, caller_id: uuid.UUID, content: str
    ) -> Tweet:
        tweet = ensure_owner(await self.get_tweet(tweet_id), caller_id, "Tweet")
        tweet.content = content
        await self.db.commit()
        await self.db.refresh(tweet)
        return tweet

    async def delete_tweet(self, tweet_id: uuid.UUID, caller_id: uuid.UUID) -> Tweet:
        tweet = ensure_owner(await self.get_tweet(tweet_id), caller_id, "Tweet")
        await self.db.delete(tweet)
        await self.db.commit()
        return tweet
