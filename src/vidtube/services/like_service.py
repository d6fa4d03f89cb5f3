"""Like service: toggle likes on videos, comments and tweets.

Toggle semantics: if the caller already likes the target the like is
deleted, otherwise one is created. The read-then-write takes no lock, so
two concurrent toggles by the same user can race; the unique constraints
on likes turn the losing insert into an IntegrityError, which is read as
"the like exists".

Videos, and comments on videos, follow video visibility: a draft can
only be liked by its owner.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.models import Comment, Like, Tweet, Video
from vidtube.errors import NotFound
from vidtube.services.video_service import load_visible_video

logger = structlog.get_logger()

# target kind → Like column
_COLUMNS = {
    "video": Like.video_id,
    "comment": Like.comment_id,
    "tweet": Like.tweet_id,
}


class LikeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_target(self, kind: str, target_id: uuid.UUID, user_id: uuid.UUID) -> None:
        if kind == "video":
            await load_visible_video(self.db, target_id, user_id)
        elif kind == "comment":
            comment = await self.db.get(Comment, target_id)
            if comment is None:
                raise NotFound("Comment not found")
            try:
                await load_visible_video(self.db, comment.video_id, user_id)
            except NotFound:
                raise NotFound("Comment not found") from None
        elif await self.db.get(Tweet, target_id) is None:
            raise NotFound("Tweet not found")

    async def _find(self, column, target_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Like]:
        result = await self.db.execute(
            select(Like).where(Like.liked_by_id == user_id, column == target_id)
        )
        return result.scalars().first()

    async def toggle(
        self, kind: str, target_id: uuid.UUID, user_id: uuid.UUID
    ) -> tuple[bool, int]:
        """Returns (liked_now, like_count_after)."""
        column = _COLUMNS[kind]
        await self._require_target(kind, target_id, user_id)

        existing = await self._find(column, target_id, user_id)
        if existing:
            await self.db.delete(existing)
            liked = False
        else:
            self.db.add(Like(liked_by_id=user_id, **{column.key: target_id}))
            liked = True
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent toggle inserted the same like first.
            await self.db.rollback()
            logger.info("like.toggle_raced", kind=kind, target_id=str(target_id))
            liked = True

        count = await self.db.scalar(select(func.count(Like.id)).where(column == target_id))
        logger.info("like.toggled", kind=kind, target_id=str(target_id), liked=liked)
        return liked, count or 0

    async def liked_videos(self, user_id: uuid.UUID) -> list[Video]:
        """Videos the user likes and can still see, most recently liked first."""
        result = await self.db.execute(
            select(Video)
            .join(Like, Like.video_id == Video.id)
            .where(
                Like.liked_by_id == user_id,
                or_(Video.is_published.is_(True), Video.owner_id == user_id),
            )
            .order_by(Like.created_at.desc(), Like.id)
        )
        return list(result.scalars().all())
