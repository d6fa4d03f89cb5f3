"""Pydantic schemas for videos."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class VideoRead(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    duration: float
    views: int
    is_published: bool
    video_file: str
    thumbnail: str
    owner_id: uuid.UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VideoPage(BaseModel):
    items: list[VideoRead]
    page: int
    limit: int
    total: int


class VideoUpdate(BaseModel):
    """Blank or missing fields keep their current value."""

    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None


class PublishStatus(BaseModel):
    id: uuid.UUID
    is_published: bool

    model_config = {"from_attributes": True}
