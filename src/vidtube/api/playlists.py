"""Playlist API routes.

Every write requires the caller to own the playlist. Reading a private
playlist requires it too; public playlists are readable by anyone.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_current_user_optional,
)
from vidtube.db.engine import get_db
from vidtube.schemas.common import MessageResponse
from vidtube.schemas.playlist import (
    PlaylistCreate,
    PlaylistDetail,
    PlaylistRead,
    PlaylistUpdate,
    PrivacyStatus,
)
from vidtube.schemas.video import VideoRead
from vidtube.services.playlist_service import PlaylistService

router = APIRouter(prefix="/playlists")


def _svc(db: AsyncSession = Depends(get_db)) -> PlaylistService:
    return PlaylistService(db)


@router.post("", response_model=PlaylistRead, status_code=201)
async def create_playlist(
    body: PlaylistCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PlaylistService = Depends(_svc),
):
    return await svc.create_playlist(
        identity.id, name=body.name, description=body.description, is_private=body.is_private
    )


@router.get("/user/{username}", response_model=list[PlaylistRead])
async def list_user_playlists(username: str, svc: PlaylistService = Depends(_svc)):
    """Public playlists only."""
    return await svc.list_public_playlists(username)


@router.get("/{playlist_id}", response_model=PlaylistDetail)
async def get_playlist(
    playlist_id: uuid.UUID,
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
    svc: PlaylistService = Depends(_svc),
):
    playlist, videos = await svc.get_playlist_detail(
        playlist_id, identity.id if identity else None
    )
    return PlaylistDetail(
        **PlaylistRead.model_validate(playlist).model_dump(),
        videos=[VideoRead.model_validate(v) for v in videos],
    )


@router.patch("/{playlist_id}", response_model=PlaylistRead)
async def update_playlist(
    playlist_id: uuid.UUID,
    body: PlaylistUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PlaylistService = Depends(_svc),
):
    return await svc.update_playlist(
        playlist_id, identity.id, name=body.name, description=body.description
    )


@router.delete("/{playlist_id}", response_model=MessageResponse)
async def delete_playlist(
    playlist_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PlaylistService = Depends(_svc),
):
    await svc.delete_playlist(playlist_id, identity.id)
    return MessageResponse(message="Playlist deleted")


@router.patch("/{playlist_id}/privacy", response_model=PrivacyStatus)
async def toggle_privacy(
    playlist_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PlaylistService = Depends(_svc),
):
    return await svc.toggle_privacy(playlist_id, identity.id)


# ─── Membership ─────────────────────────────────────────


@router.post("/{playlist_id}/videos/{video_id}", response_model=MessageResponse)
async def add_video(
    playlist_id: uuid.UUID,
    video_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PlaylistService = Depends(_svc),
):
    await svc.add_video(playlist_id, video_id, identity.id)
    return MessageResponse(message="Video added to playlist")


@router.delete("/{playlist_id}/videos/{video_id}", response_model=MessageResponse)
async def remove_video(
    playlist_id: uuid.UUID,
    video_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PlaylistService = Depends(_svc),
):
    await svc.remove_video(playlist_id, video_id, identity.id)
    return MessageResponse(message="Video removed from playlist")
