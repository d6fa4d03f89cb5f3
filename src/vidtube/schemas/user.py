"""Pydantic schemas for users, sessions and channel profiles.

Separate request schemas (input) from read schemas (output). No read
schema carries password_hash or refresh_token.
"""

import uuid
from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints, model_validator

from vidtube.schemas.common import NonBlankStr


class UserRead(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    fullname: str
    avatar: str
    cover_image: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ChannelProfile(BaseModel):
    id: uuid.UUID
    username: str
    fullname: str
    avatar: str
    cover_image: Optional[str] = None
    subscribers_count: int
    subscribed_to_count: int
    is_subscribed: bool = False


class ChannelSummary(BaseModel):
    id: uuid.UUID
    username: str
    fullname: str
    avatar: str

    model_config = {"from_attributes": True}


# ─── Sessions ───────────────────────────────────────────


class LoginRequest(BaseModel):
    """Log in with either username or email."""

    username: Optional[str] = None
    email: Optional[str] = None
    password: NonBlankStr

    @model_validator(mode="after")
    def require_identifier(self):
        if not (self.username and self.username.strip()) and not (
            self.email and self.email.strip()
        ):
            raise ValueError("username or email is required")
        return self


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenResponse):
    user: UserRead


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


# ─── Account ────────────────────────────────────────────


class ChangePasswordRequest(BaseModel):
    old_password: NonBlankStr
    new_password: Annotated[str, StringConstraints(min_length=8)]


class AccountUpdate(BaseModel):
    fullname: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
