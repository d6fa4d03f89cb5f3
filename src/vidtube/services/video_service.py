"""Video service: upload, read, update, publish toggle, delete.

Every mutation loads the video and runs it through ensure_owner() before
touching it. Deleting a video commits the row removal first and then
removes the media objects best-effort, so a storage failure can leave an
orphaned object in the bucket but never a row pointing at deleted media.
"""

import uuid
from pathlib import Path
from typing import Optional

import structlog
from fastapi import UploadFile
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.policy import OwnershipDecision, check_ownership, ensure_owner
from vidtube.config import Settings
from vidtube.db.models import User, Video
from vidtube.errors import NotFound, ValidationError
from vidtube.storage.media import MediaStore, delete_quietly
from vidtube.storage.uploads import has_file, store_upload

logger = structlog.get_logger()


async def load_visible_video(
    db: AsyncSession, video_id: uuid.UUID, viewer_id: Optional[uuid.UUID]
) -> Video:
    """Published videos are public; unpublished ones exist only for the owner.

    Everything that reaches a video by id (reads, comments, likes, playlist
    entries) goes through here, so a draft is a 404 for anyone else.
    """
    video = await db.get(Video, video_id)
    if video is None:
        raise NotFound("Video not found")
    if not video.is_published and (
        check_ownership(video.owner_id, viewer_id) is OwnershipDecision.FORBIDDEN
    ):
        raise NotFound("Video not found")
    return video


class VideoService:
    """Business logic for videos."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def get_video(self, video_id: uuid.UUID) -> Optional[Video]:
        return await self.db.get(Video, video_id)

    async def get_visible_video(
        self, video_id: uuid.UUID, viewer_id: Optional[uuid.UUID]
    ) -> Video:
        return await load_visible_video(self.db, video_id, viewer_id)

    async def list_published(
        self, page: int, limit: int, username: Optional[str] = None
    ) -> tuple[list[Video], int]:
        query = select(Video).where(Video.is_published.is_(True))
        if username:
            query = query.join(User, User.id == Video.owner_id).where(
                User.username == username.strip().lower()
            )
        total = await self.db.scalar(
            select(func.count()).select_from(query.subquery())
        )
        result = await self.db.execute(
            query.order_by(Video.created_at.desc(), Video.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def create_video(
        self,
        owner_id: uuid.UUID,
        title: str,
        description: str,
        duration: str,
        video_file: Optional[UploadFile],
        thumbnail: Optional[UploadFile],
        media: MediaStore,
    ) -> Video:
        title = (title or "").strip()
        description = (description or "").strip()
        if not title or not description or not (duration or "").strip():
            raise ValidationError("title, description and duration are required")
        try:
            duration_seconds = float(duration)
        except ValueError:
            raise ValidationError("duration must be a number of seconds")
        if duration_seconds <= 0:
            raise ValidationError("duration must be positive")
        if not has_file(video_file):
            raise ValidationError("Video file is required")
        if not has_file(thumbnail):
            raise ValidationError("Thumbnail is required")

        upload_dir = Path(self.settings.upload_dir)
        max_bytes = self.settings.max_upload_bytes
        video_asset = await store_upload(media, video_file, "videos", upload_dir, max_bytes)
        try:
            thumb_asset = await store_upload(
                media, thumbnail, "thumbnails", upload_dir, max_bytes
            )
        except Exception:
            await delete_quietly(media, video_asset.public_id)
            raise

        video = Video(
            title=title,
            description=description,
            duration=duration_seconds,
            video_file=video_asset.url,
            video_file_public_id=video_asset.public_id,
            thumbnail=thumb_asset.url,
            thumbnail_public_id=thumb_asset.public_id,
            owner_id=owner_id,
        )
        self.db.add(video)
        await self.db.commit()
        logger.info("video.created", video_id=str(video.id), owner_id=str(owner_id))
        return video

    async def update_video(
        self,
        video_id: uuid.UUID,
        caller_id: uuid.UUID,
        title: Optional[str],
        description: Optional[str],
    ) -> Video:
        video = ensure_owner(await self.get_video(video_id), caller_id, "Video")
        if title and title.strip():
            video.title = title.strip()
        if description and description.strip():
            video.description = description.strip()
        await self.db.commit()
        await self.db.refresh(video)
        return video

    async def toggle_publish(self, video_id: uuid.UUID, caller_id: uuid.UUID) -> Video:
        video = ensure_owner(await self.get_video(video_id), caller_id, "Video")
        video.is_published = not video.is_published
        await self.db.commit()
        logger.info(
            "video.publish_toggled",
            video_id=str(video_id),
            is_published=video.is_published,
        )
        return video

    async def delete_video(
        self, video_id: uuid.UUID, caller_id: uuid.UUID, media: MediaStore
    ) -> Video:
        video = ensure_owner(await self.get_video(video_id), caller_id, "Video")
        media_ids = (video.thumbnail_public_id, video.video_file_public_id)
        await self.db.delete(video)
        await self.db.commit()
        logger.info("video.deleted", video_id=str(video_id))

        await delete_quietly(media, *media_ids)
        return video
