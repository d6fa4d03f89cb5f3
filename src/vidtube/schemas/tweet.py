"""Pydantic schemas for tweets."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from vidtube.schemas.common import NonBlankStr


class TweetCreate(BaseModel):
    content: NonBlankStr


class TweetUpdate(BaseModel):
    content: NonBlankStr


class TweetRead(BaseModel):
    id: uuid.UUID
    content: str
    owner_id: uuid.UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
