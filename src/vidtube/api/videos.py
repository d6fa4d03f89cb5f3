"""Video API routes.

Reads are public (unpublished videos only for their owner); every
write goes through the owner check in VideoService.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_current_user_optional,
    get_settings,
)
from vidtube.config import Settings
from vidtube.db.engine import get_db
from vidtube.schemas.common import MessageResponse
from vidtube.schemas.video import PublishStatus, VideoPage, VideoRead, VideoUpdate
from vidtube.services.video_service import VideoService
from vidtube.storage.media import MediaStore, get_media_store

router = APIRouter(prefix="/videos")


def _svc(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> VideoService:
    return VideoService(db, settings)


@router.get("", response_model=VideoPage)
async def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    username: Optional[str] = Query(None, description="Only videos from this channel"),
    svc: VideoService = Depends(_svc),
):
    """Published videos, newest first."""
    items, total = await svc.list_published(page, limit, username=username)
    return VideoPage(
        items=[VideoRead.model_validate(v) for v in items],
        page=page,
        limit=limit,
        total=total,
    )


@router.post("", response_model=VideoRead, status_code=201)
async def publish_video(
    title: str = Form(...),
    description: str = Form(...),
    duration: str = Form(...),
    video_file: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: VideoService = Depends(_svc),
    media: MediaStore = Depends(get_media_store),
):
    return await svc.create_video(
        owner_id=identity.id,
        title=title,
        description=description,
        duration=duration,
        video_file=video_file,
        thumbnail=thumbnail,
        media=media,
    )


@router.get("/{video_id}", response_model=VideoRead)
async def get_video(
    video_id: uuid.UUID,
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
    svc: VideoService = Depends(_svc),
):
    return await svc.get_visible_video(video_id, identity.id if identity else None)


@router.patch("/{video_id}", response_model=VideoRead)
async def update_video(
    video_id: uuid.UUID,
    body: VideoUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: VideoService = Depends(_svc),
):
    return await svc.update_video(
        video_id, identity.id, title=body.title, description=body.description
    )


@router.delete("/{video_id}", response_model=MessageResponse)
async def delete_video(
    video_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: VideoService = Depends(_svc),
    media: MediaStore = Depends(get_media_store),
):
    await svc.delete_video(video_id, identity.id, media)
    return MessageResponse(message="Video deleted")


@router.patch("/{video_id}/publish", response_model=PublishStatus)
async def toggle_publish(
    video_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: VideoService = Depends(_svc),
):
    return await svc.toggle_publish(video_id, identity.id)
