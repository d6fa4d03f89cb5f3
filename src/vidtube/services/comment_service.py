"""Comment service.

Comments live under a video and follow its visibility: a draft's comments
are readable and writable only by the video's owner.
"""

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.policy import ensure_owner
from vidtube.db.models import Comment
from vidtube.services.video_service import load_visible_video


class CommentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_comments(
        self,
        video_id: uuid.UUID,
        page: int,
        limit: int,
        viewer_id: Optional[uuid.UUID] = None,
    ) -> tuple[list[Comment], int]:
        """Oldest first, page is 1-based."""
        await load_visible_video(self.db, video_id, viewer_id)
        total = await self.db.scalar(
            select(func.count(Comment.id)).where(Comment.video_id == video_id)
        )
        result = await self.db.execute(
            select(Comment)
            .where(Comment.video_id == video_id)
            .order_by(Comment.created_at, Comment.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def add_comment(
        self, video_id: uuid.UUID, owner_id: uuid.UUID, content: str
    ) -> Comment:
        await load_visible_video(self.db, video_id, owner_id)
        comment = Comment(video_id=video_id, owner_id=owner_id, content=content)
        self.db.add(comment)
        await self.db.commit()
        return comment

    async def update_comment(
        self, comment_id: uuid.UUID, caller_id: uuid.UUID, content: str
    ) -> Comment:
        comment = ensure_owner(await self.db.get(Comment, comment_id), caller_id, "Comment")
        comment.content = content
        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    async def delete_comment(self, comment_id: uuid.UUID, caller_id: uuid.UUID) -> Comment:
        comment = ensure_owner(await self.db.get(Comment, comment_id), caller_id, "Comment")
        await self.db.delete(comment)
        await self.db.commit()
        return comment
