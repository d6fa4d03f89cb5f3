"""Pydantic schemas for playlists."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from vidtube.schemas.common import NonBlankStr
from vidtube.schemas.video import VideoRead


class PlaylistCreate(BaseModel):
    name: NonBlankStr = Field(..., max_length=100)
    description: str = ""
    is_private: bool = False


class PlaylistUpdate(BaseModel):
    """Blank or missing fields keep their current value."""

    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None


class PlaylistRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    is_private: bool
    owner_id: uuid.UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PlaylistDetail(PlaylistRead):
    """Playlist with its videos in insertion order."""
    videos: list[VideoRead] = []


class PrivacyStatus(BaseModel):
    id: uuid.UUID
    is_private: bool

    model_config = {"from_attributes": True}
