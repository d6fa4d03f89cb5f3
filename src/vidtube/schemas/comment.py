"""Pydantic schemas for comments."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from vidtube.schemas.common import NonBlankStr


class CommentCreate(BaseModel):
    content: NonBlankStr


class CommentUpdate(BaseModel):
    content: NonBlankStr


class CommentRead(BaseModel):
    id: uuid.UUID
    content: str
    video_id: uuid.UUID
    owner_id: uuid.UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CommentPage(BaseModel):
    items: list[CommentRead]
    page: int
    limit: int
    total: int
