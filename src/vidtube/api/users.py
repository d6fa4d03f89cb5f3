"""Users API: registration, session lifecycle, account and channel.

Routes:
- POST /users/register → multipart form with avatar (+ optional cover image)
- POST /users/login → username or email + password → tokens + cookies
- POST /users/refresh-token → refresh token (cookie or body) → rotated pair
- POST /users/logout → clear stored refresh token + cookies
- GET /users/me, PATCH /users/me, POST /users/change-password
- PATCH /users/me/avatar, PATCH /users/me/cover-image
- GET /users/channel/{username} → public channel profile
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.cookies import REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies
from vidtube.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_current_user_optional,
    get_settings,
    get_token_service,
)
from vidtube.auth.tokens import TokenService
from vidtube.config import Settings
from vidtube.db.engine import get_db
from vidtube.schemas.common import MessageResponse
from vidtube.schemas.user import (
    AccountUpdate,
    ChangePasswordRequest,
    ChannelProfile,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    TokenResponse,
    UserRead,
)
from vidtube.services.user_service import UserService
from vidtube.storage.media import MediaStore, get_media_store

router = APIRouter(prefix="/users")


def _svc(
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(db, tokens, settings)


# ─── Registration ───────────────────────────────────────


@router.post("/register", response_model=UserRead, status_code=201)
async def register(
    username: str = Form(...),
    email: str = Form(...),
    fullname: str = Form(...),
    password: str = Form(...),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None),
    svc: UserService = Depends(_svc),
    media: MediaStore = Depends(get_media_store),
):
    """Create an account. The avatar is required, the cover image is not."""
    return await svc.register(
        username=username,
        email=email,
        fullname=fullname,
        password=password,
        avatar=avatar,
        cover_image=cover_image,
        media=media,
    )


# ─── Sessions ───────────────────────────────────────────


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    response: Response,
    svc: UserService = Depends(_svc),
    settings: Settings = Depends(get_settings),
):
    """Log in → access + refresh tokens, also set as http-only cookies."""
    user, pair = await svc.login(body.password, username=body.username, email=body.email)
    set_auth_cookies(response, pair, settings)
    return LoginResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=UserRead.model_validate(user),
    )


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    svc: UserService = Depends(_svc),
    settings: Settings = Depends(get_settings),
):
    """Rotate the session: the presented refresh token stops working."""
    presented = request.cookies.get(REFRESH_COOKIE) or (body.refresh_token if body else None)
    _, pair = await svc.refresh(presented)
    set_auth_cookies(response, pair, settings)
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
    settings: Settings = Depends(get_settings),
):
    await svc.logout(identity.id)
    clear_auth_cookies(response, settings)
    return MessageResponse(message="Logged out")


# ─── Account ────────────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(identity: CurrentIdentity = Depends(get_current_user)):
    """Get the current authenticated user's info."""
    return identity


@router.patch("/me", response_model=UserRead)
async def update_me(
    body: AccountUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    return await svc.update_account(identity.id, fullname=body.fullname, email=body.email)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    response: Response,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
    settings: Settings = Depends(get_settings),
):
    """Change password. The stored refresh token is revoked, so log in again."""
    await svc.change_password(identity.id, body.old_password, body.new_password)
    clear_auth_cookies(response, settings)
    return MessageResponse(message="Password changed")


@router.patch("/me/avatar", response_model=UserRead)
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
    media: MediaStore = Depends(get_media_store),
):
    return await svc.replace_avatar(identity.id, avatar, media)


@router.patch("/me/cover-image", response_model=UserRead)
async def update_cover_image(
    cover_image: Optional[UploadFile] = File(None),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
    media: MediaStore = Depends(get_media_store),
):
    return await svc.replace_cover_image(identity.id, cover_image, media)


# ─── Channel ────────────────────────────────────────────


@router.get("/channel/{username}", response_model=ChannelProfile)
async def channel_profile(
    username: str,
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
    svc: UserService = Depends(_svc),
):
    viewer_id = identity.id if identity else None
    return await svc.channel_profile(username, viewer_id=viewer_id)
