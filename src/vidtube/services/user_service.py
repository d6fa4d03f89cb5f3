"""User service: registration, session lifecycle, and account management.

Session lifecycle:
  login   → verify password → issue access+refresh pair → store refresh
            token on the user (overwrites any previous one)
  refresh → verify refresh token → must equal the stored value → issue a
            new pair and store the new refresh token (rotation)
  logout  → clear the stored refresh token

Because only one refresh token is stored per user, logging in again or
refreshing invalidates every refresh token issued before it. Presenting
an old one fails with TokenMismatch.
"""

import secrets
import uuid
from pathlib import Path
from typing import Optional

import structlog
from fastapi import UploadFile
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.password import hash_password, needs_rehash, verify_password
from vidtube.auth.tokens import (
    TokenError,
    TokenPair,
    TokenService,
    UserClaims,
    claims_user_id,
)
from vidtube.config import Settings
from vidtube.db.models import Subscription, User
from vidtube.errors import (
    Conflict,
    InvalidCredentials,
    InvalidToken,
    MissingToken,
    NotFound,
    TokenMismatch,
    UnknownUser,
    ValidationError,
)
from vidtube.storage.media import MediaAsset, MediaStore, delete_quietly
from vidtube.storage.uploads import has_file, store_upload

logger = structlog.get_logger()


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _claims(user: User) -> UserClaims:
    return UserClaims(id=user.id, email=user.email, username=user.username)


class UserService:
    """Business logic for users and their sessions."""

    def __init__(self, db: AsyncSession, tokens: TokenService, settings: Settings):
        self.db = db
        self.tokens = tokens
        self.settings = settings

    # ─── Lookups ────────────────────────────────────────

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.username == _normalize(username))
        )
        return result.scalars().first()

    async def _find_login_user(
        self, username: Optional[str], email: Optional[str]
    ) -> Optional[User]:
        conditions = []
        if _normalize(username):
            conditions.append(User.username == _normalize(username))
        if _normalize(email):
            conditions.append(User.email == _normalize(email))
        result = await self.db.execute(select(User).where(or_(*conditions)))
        return result.scalars().first()

    async def _ensure_available(
        self, username: Optional[str] = None, email: Optional[str] = None
    ) -> None:
        if username:
            taken = await self.db.execute(select(User.id).where(User.username == username))
            if taken.first():
                raise Conflict("Username already taken")
        if email:
            taken = await self.db.execute(select(User.id).where(User.email == email))
            if taken.first():
                raise Conflict("Email already registered")

    # ─── Registration ───────────────────────────────────

    async def register(
        self,
        username: str,
        email: str,
        fullname: str,
        password: str,
        avatar: UploadFile,
        cover_image: Optional[UploadFile],
        media: MediaStore,
    ) -> User:
        """Create a user; uploads happen only after uniqueness is confirmed."""
        username = _normalize(username)
        email = _normalize(email)
        fullname = (fullname or "").strip()
        missing = [
            name
            for name, value in (
                ("username", username),
                ("email", email),
                ("fullname", fullname),
                ("password", (password or "").strip()),
            )
            if not value
        ]
        if missing:
            raise ValidationError(f"Required fields are missing: {', '.join(missing)}")
        if len(password) < 8:
            raise ValidationError("Password must be at least 8 characters")
        if not has_file(avatar):
            raise ValidationError("Avatar file is required")

        await self._ensure_available(username=username, email=email)

        avatar_asset = await self._store(media, avatar, "avatars")
        cover_asset: Optional[MediaAsset] = None
        if has_file(cover_image):
            try:
                cover_asset = await self._store(media, cover_image, "covers")
            except Exception:
                await delete_quietly(media, avatar_asset.public_id)
                raise

        user = User(
            username=username,
            email=email,
            fullname=fullname,
            password_hash=hash_password(password, rounds=self.settings.bcrypt_rounds),
            avatar=avatar_asset.url,
            avatar_public_id=avatar_asset.public_id,
            cover_image=cover_asset.url if cover_asset else None,
            cover_image_public_id=cover_asset.public_id if cover_asset else None,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same name.
            await self.db.rollback()
            await delete_quietly(
                media,
                avatar_asset.public_id,
                cover_asset.public_id if cover_asset else None,
            )
            raise Conflict("Username or email already registered")

        logger.info("auth.user_registered", user_id=str(user.id), username=username)
        return user

    async def _store(self, media: MediaStore, upload: UploadFile, folder: str) -> MediaAsset:
        return await store_upload(
            media,
            upload,
            folder,
            Path(self.settings.upload_dir),
            self.settings.max_upload_bytes,
        )

    # ─── Session lifecycle ──────────────────────────────

    async def login(
        self, password: str, username: Optional[str] = None, email: Optional[str] = None
    ) -> tuple[User, TokenPair]:
        if not (_normalize(username) or _normalize(email)) or not password:
            raise ValidationError("username or email, and password are required")

        user = await self._find_login_user(username, email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("auth.login_failed", username=username, email=email)
            raise InvalidCredentials()

        # Upgrade hashes made with a different cost on successful login
        if needs_rehash(user.password_hash, self.settings.bcrypt_rounds):
            user.password_hash = hash_password(password, rounds=self.settings.bcrypt_rounds)
            logger.info("auth.password_rehashed", user_id=str(user.id))

        pair = self.tokens.issue_pair(_claims(user))
        user.refresh_token = pair.refresh_token
        await self.db.commit()

        logger.info("auth.login_succeeded", user_id=str(user.id))
        return user, pair

    async def refresh(self, presented: Optional[str]) -> tuple[User, TokenPair]:
        if not presented:
            raise MissingToken("Refresh token required")

        try:
            claims = self.tokens.verify_refresh(presented)
            user_id = claims_user_id(claims)
        except TokenError as e:
            raise InvalidToken(str(e))

        user = await self.db.get(User, user_id)
        if user is None:
            raise UnknownUser()

        stored = user.refresh_token
        if not stored or not secrets.compare_digest(stored, presented):
            logger.warning("auth.refresh_token_mismatch", user_id=str(user.id))
            raise TokenMismatch()

        pair = self.tokens.issue_pair(_claims(user))
        user.refresh_token = pair.refresh_token
        await self.db.commit()

        logger.info("auth.token_refreshed", user_id=str(user.id))
        return user, pair

    async def logout(self, user_id: uuid.UUID) -> None:
        user = await self.db.get(User, user_id)
        if user is None:
            raise UnknownUser()
        user.refresh_token = None
        await self.db.commit()
        logger.info("auth.logged_out", user_id=str(user_id))

    # ─── Account management ─────────────────────────────

    async def change_password(
        self, user_id: uuid.UUID, old_password: str, new_password: str
    ) -> None:
        """Change the password and revoke the stored refresh token."""
        user = await self._require(user_id)
        if not verify_password(old_password, user.password_hash):
            raise InvalidCredentials("Old password is incorrect")
        user.password_hash = hash_password(new_password, rounds=self.settings.bcrypt_rounds)
        user.refresh_token = None
        await self.db.commit()
        logger.info("auth.password_changed", user_id=str(user_id))

    async def update_account(
        self, user_id: uuid.UUID, fullname: Optional[str], email: Optional[str]
    ) -> User:
        user = await self._require(user_id)
        new_fullname = (fullname or "").strip()
        new_email = _normalize(email)

        if not new_fullname and not new_email:
            raise ValidationError("Provide fullname or email to update")
        if new_email and new_email != user.email:
            await self._ensure_available(email=new_email)
            user.email = new_email
        if new_fullname:
            user.fullname = new_fullname

        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def replace_avatar(
        self, user_id: uuid.UUID, upload: Optional[UploadFile], media: MediaStore
    ) -> User:
        return await self._replace_image(user_id, upload, media, "avatar")

    async def replace_cover_image(
        self, user_id: uuid.UUID, upload: Optional[UploadFile], media: MediaStore
    ) -> User:
        return await self._replace_image(user_id, upload, media, "cover_image")

    async def _replace_image(
        self, user_id: uuid.UUID, upload: Optional[UploadFile], media: MediaStore, field: str
    ) -> User:
        """Upload the new image, point the user at it, then drop the old one."""
        if not has_file(upload):
            raise ValidationError(f"{field} file is required")
        user = await self._require(user_id)
        folder = "avatars" if field == "avatar" else "covers"
        asset = await self._store(media, upload, folder)

        old_public_id = getattr(user, f"{field}_public_id")
        setattr(user, field, asset.url)
        setattr(user, f"{field}_public_id", asset.public_id)
        await self.db.commit()
        await self.db.refresh(user)

        await delete_quietly(media, old_public_id)
        return user

    async def _require(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise UnknownUser()
        return user

    # ─── Channel profile ────────────────────────────────

    async def channel_profile(
        self, username: str, viewer_id: Optional[uuid.UUID] = None
    ) -> dict:
        channel = await self.get_by_username(username)
        if channel is None:
            raise NotFound("Channel not found")

        subscribers = await self.db.scalar(
            select(func.count(Subscription.id)).where(Subscription.channel_id == channel.id)
        )
        subscribed_to = await self.db.scalar(
            select(func.count(Subscription.id)).where(
                Subscription.subscriber_id == channel.id
            )
        )
        is_subscribed = False
        if viewer_id is not None:
            found = await self.db.execute(
                select(Subscription.id).where(
                    Subscription.channel_id == channel.id,
                    Subscription.subscriber_id == viewer_id,
                )
            )
            is_subscribed = found.first() is not None

        return {
            "id": channel.id,
            "username": channel.username,
            "fullname": channel.fullname,
            "avatar": channel.avatar,
            "cover_image": channel.cover_image,
            "subscribers_count": subscribers or 0,
            "subscribed_to_count": subscribed_to or 0,
            "is_subscribed": is_subscribed,
        }
