"""Like API routes: toggle a like on a video, comment or tweet.

All routes here require authentication; the router is mounted with the
auth dependency and handlers read the identity from it again (FastAPI
caches the dependency per request).
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import CurrentIdentity, get_current_user
from vidtube.db.engine import get_db
from vidtube.schemas.engagement import LikeToggleResult
from vidtube.schemas.video import VideoRead
from vidtube.services.like_service import LikeService

router = APIRouter(prefix="/likes")


def _svc(db: AsyncSession = Depends(get_db)) -> LikeService:
    return LikeService(db)


async def _toggle(svc: LikeService, kind: str, target_id: uuid.UUID, user_id: uuid.UUID):
    liked, count = await svc.toggle(kind, target_id, user_id)
    return LikeToggleResult(liked=liked, like_count=count)


@router.post("/videos/{video_id}", response_model=LikeToggleResult)
async def toggle_video_like(
    video_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: LikeService = Depends(_svc),
):
    return await _toggle(svc, "video", video_id, identity.id)


@router.post("/comments/{comment_id}", response_model=LikeToggleResult)
async def toggle_comment_like(
    comment_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: LikeService = Depends(_svc),
):
    return await _toggle(svc, "comment", comment_id, identity.id)


@router.post("/tweets/{tweet_id}", response_model=LikeToggleResult)
async def toggle_tweet_like(
    tweet_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: LikeService = Depends(_svc),
):
    return await _toggle(svc, "tweet", tweet_id, identity.id)


@router.get("/videos", response_model=list[VideoRead])
async def liked_videos(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: LikeService = Depends(_svc),
):
    """Videos the caller likes, most recently liked first."""
    return await svc.liked_videos(identity.id)
