"""Playlist service: CRUD, privacy toggle, and ordered video membership.

All writes go through ensure_owner(). Reading a private playlist goes
through it too, with a read-specific message. Membership changes are
read-then-write; the (playlist_id, video_id) unique constraint keeps a
concurrent double-add from creating duplicates, and the loser gets the
same 409 as a sequential double-add. Only videos the caller can see can
be added.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vidtube.auth.policy import ensure_owner
from vidtube.db.models import Playlist, PlaylistVideo, User, Video
from vidtube.errors import Conflict, NotFound
from vidtube.services.video_service import load_visible_video

logger = structlog.get_logger()


class PlaylistService:
    """Business logic for playlists."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_playlist(self, playlist_id: uuid.UUID) -> Optional[Playlist]:
        return await self.db.get(Playlist, playlist_id)

    async def create_playlist(
        self, owner_id: uuid.UUID, name: str, description: str, is_private: bool
    ) -> Playlist:
        playlist = Playlist(
            owner_id=owner_id,
            name=name,
            description=(description or "").strip(),
            is_private=is_private,
        )
        self.db.add(playlist)
        await self.db.commit()
        logger.info("playlist.created", playlist_id=str(playlist.id), owner_id=str(owner_id))
        return playlist

    async def list_public_playlists(self, username: str) -> list[Playlist]:
        owner_id = await self.db.scalar(
            select(User.id).where(User.username == username.strip().lower())
        )
        if owner_id is None:
            raise NotFound("User not found")
        result = await self.db.execute(
            select(Playlist)
            .where(Playlist.owner_id == owner_id, Playlist.is_private.is_(False))
            .order_by(Playlist.created_at.desc(), Playlist.id)
        )
        return list(result.scalars().all())

    async def get_playlist_detail(
        self, playlist_id: uuid.UUID, viewer_id: Optional[uuid.UUID]
    ) -> tuple[Playlist, list[Video]]:
        """Playlist plus its videos in insertion order.

        Private playlists are only readable by their owner.
        """
        result = await self.db.execute(
            select(Playlist)
            .where(Playlist.id == playlist_id)
            .options(selectinload(Playlist.entries).selectinload(PlaylistVideo.video))
        )
        playlist = result.scalars().first()
        if playlist is None:
            raise NotFound("Playlist not found")
        if playlist.is_private:
            ensure_owner(
                playlist, viewer_id, "Playlist", message="This playlist is private"
            )
        videos = [
            entry.video
            for entry in playlist.entries
            if entry.video.is_published or entry.video.owner_id == viewer_id
        ]
        return playlist, videos

    async def update_playlist(
        self,
        playlist_id: uuid.UUID,
        caller_id: uuid.UUID,
        name: Optional[str],
        description: Optional[str],
    ) -> Playlist:
        playlist = ensure_owner(await self.get_playlist(playlist_id), caller_id, "Playlist")
        if name and name.strip():
            playlist.name = name.strip()
        if description and description.strip():
            playlist.description = description.strip()
        await self.db.commit()
        await self.db.refresh(playlist)
        return playlist

    async def delete_playlist(self, playlist_id: uuid.UUID, caller_id: uuid.UUID) -> Playlist:
        playlist = ensure_owner(await self.get_playlist(playlist_id), caller_id, "Playlist")
        await self.db.delete(playlist)
        await self.db.commit()
        logger.info("playlist.deleted", playlist_id=str(playlist_id))
        return playlist

    async def toggle_privacy(self, playlist_id: uuid.UUID, caller_id: uuid.UUID) -> Playlist:
        playlist = ensure_owner(await self.get_playlist(playlist_id), caller_id, "Playlist")
        playlist.is_private = not playlist.is_private
        await self.db.commit()
        return playlist

    async def _entry(self, playlist_id: uuid.UUID, video_id: uuid.UUID) -> Optional[PlaylistVideo]:
        result = await self.db.execute(
            select(PlaylistVideo).where(
                PlaylistVideo.playlist_id == playlist_id,
                PlaylistVideo.video_id == video_id,
            )
        )
        return result.scalars().first()

    async def add_video(
        self, playlist_id: uuid.UUID, video_id: uuid.UUID, caller_id: uuid.UUID
    ) -> None:
        ensure_owner(await self.get_playlist(playlist_id), caller_id, "Playlist")
        await load_visible_video(self.db, video_id, caller_id)
        if await self._entry(playlist_id, video_id):
            raise Conflict("Video is already in the playlist")
        self.db.add(PlaylistVideo(playlist_id=playlist_id, video_id=video_id))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("Video is already in the playlist")

    async def remove_video(
        self, playlist_id: uuid.UUID, video_id: uuid.UUID, caller_id: uuid.UUID
    ) -> None:
        ensure_owner(await self.get_playlist(playlist_id), caller_id, "Playlist")
        entry = await self._entry(playlist_id, video_id)
        if entry is None:
            raise NotFound("Video is not in the playlist")
        await self.db.delete(entry)
        await self.db.commit()
