"""FastAPI auth dependencies: the request gate.

Used as Depends() in route handlers to extract and validate the caller's
identity:

1. Token from the accessToken cookie, else "Authorization: Bearer <token>"
   (non-browser clients). None → MissingToken.
2. Verify signature + expiry with the access secret → InvalidToken.
3. Load the user by the id claim, selecting public columns only (no
   password hash, no refresh token) → UnknownUser.
4. Attach the identity to request.state.user.
"""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.cookies import ACCESS_COOKIE
from vidtube.auth.tokens import TokenError, TokenService, claims_user_id
from vidtube.config import Settings
from vidtube.db.engine import get_db
from vidtube.db.models import User
from vidtube.errors import InvalidToken, MissingToken, UnknownUser


class CurrentIdentity:
    """The authenticated user making the request.

    Built from a projection of the users table that leaves out
    password_hash and refresh_token. Downstream code compares
    CurrentIdentity.id against owner_id columns.
    """

    def __init__(
        self,
        id: uuid.UUID,
        username: str,
        email: str,
        fullname: str,
        avatar: str,
        cover_image: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.username = username
        self.email = email
        self.fullname = fullname
        self.avatar = avatar
        self.cover_image = cover_image
        self.created_at = created_at


_IDENTITY_COLUMNS = (
    User.id,
    User.username,
    User.email,
    User.fullname,
    User.avatar,
    User.cover_image,
    User.created_at,
)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def extract_access_token(request: Request) -> Optional[str]:
    """Cookie first, then the Bearer header."""
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


async def load_identity(db: AsyncSession, user_id: uuid.UUID) -> Optional[CurrentIdentity]:
    result = await db.execute(select(*_IDENTITY_COLUMNS).where(User.id == user_id))
    row = result.first()
    if row is None:
        return None
    return CurrentIdentity(**row._mapping)


async def _authenticate(
    request: Request, token: str, tokens: TokenService, db: AsyncSession
) -> CurrentIdentity:
    try:
        claims = tokens.verify_access(token)
        user_id = claims_user_id(claims)
    except TokenError as e:
        raise InvalidToken(str(e))

    identity = await load_identity(db, user_id)
    if identity is None:
        raise UnknownUser()

    request.state.user = identity
    return identity


async def get_current_user_optional(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_db),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional: None when no token is sent).

    This is the "soft" auth dependency for public endpoints that show
    more to the owner (unpublished videos, private playlists). A token
    that is present but bad is still rejected.
    """
    token = extract_access_token(request)
    if not token:
        return None
    return await _authenticate(request, token, tokens, db)


async def get_current_user(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_db),
) -> CurrentIdentity:
    """Extract current identity (required: 401 without a token)."""
    token = extract_access_token(request)
    if not token:
        raise MissingToken()
    return await _authenticate(request, token, tokens, db)
