"""Channel dashboard routes."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import CurrentIdentity, get_current_user_optional
from vidtube.db.engine import get_db
from vidtube.schemas.engagement import ChannelStats
from vidtube.schemas.video import VideoRead
from vidtube.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard")


def _svc(db: AsyncSession = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


@router.get("/channels/{channel_id}/stats", response_model=ChannelStats)
async def channel_stats(channel_id: uuid.UUID, svc: DashboardService = Depends(_svc)):
    return await svc.channel_stats(channel_id)


@router.get("/channels/{channel_id}/videos", response_model=list[VideoRead])
async def channel_videos(
    channel_id: uuid.UUID,
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
    svc: DashboardService = Depends(_svc),
):
    """All of the channel's videos; drafts only when the owner asks."""
    return await svc.channel_videos(channel_id, identity.id if identity else None)
