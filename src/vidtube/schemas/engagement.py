"""Pydantic schemas for likes, subscriptions and channel dashboards."""

import uuid

from pydantic import BaseModel


class LikeToggleResult(BaseModel):
    liked: bool
    like_count: int


class SubscriptionToggleResult(BaseModel):
    subscribed: bool
    subscribers_count: int


class ChannelStats(BaseModel):
    channel_id: uuid.UUID
    total_videos: int
    total_views: int
    total_likes: int
    total_subscribers: int
