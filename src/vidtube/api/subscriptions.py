"""Subscription API routes."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import CurrentIdentity, get_current_user
from vidtube.db.engine import get_db
from vidtube.schemas.engagement import SubscriptionToggleResult
from vidtube.schemas.user import ChannelSummary
from vidtube.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/subscriptions")


def _svc(db: AsyncSession = Depends(get_db)) -> SubscriptionService:
    return SubscriptionService(db)


@router.post("/channels/{channel_id}", response_model=SubscriptionToggleResult)
async def toggle_subscription(
    channel_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: SubscriptionService = Depends(_svc),
):
    subscribed, count = await svc.toggle(channel_id, identity.id)
    return SubscriptionToggleResult(subscribed=subscribed, subscribers_count=count)


@router.get("/channels/{channel_id}/subscribers", response_model=list[ChannelSummary])
async def list_subscribers(channel_id: uuid.UUID, svc: SubscriptionService = Depends(_svc)):
    return await svc.subscribers(channel_id)


@router.get("/users/{subscriber_id}/channels", response_model=list[ChannelSummary])
async def list_subscribed_channels(
    subscriber_id: uuid.UUID, svc: SubscriptionService = Depends(_svc)
):
    return await svc.subscribed_channels(subscriber_id)
