"""Comment API routes. Listed and created under a video, edited by id."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_current_user_optional,
)
from vidtube.db.engine import get_db
from vidtube.schemas.comment import CommentCreate, CommentPage, CommentRead, CommentUpdate
from vidtube.schemas.common import MessageResponse
from vidtube.services.comment_service import CommentService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


@router.get("/videos/{video_id}/comments", response_model=CommentPage)
async def list_comments(
    video_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
    svc: CommentService = Depends(_svc),
):
    items, total = await svc.list_comments(
        video_id, page, limit, identity.id if identity else None
    )
    return CommentPage(
        items=[CommentRead.model_validate(c) for c in items],
        page=page,
        limit=limit,
        total=total,
    )


@router.post("/videos/{video_id}/comments", response_model=CommentRead, status_code=201)
async def add_comment(
    video_id: uuid.UUID,
    body: CommentCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: CommentService = Depends(_svc),
):
    return await svc.add_comment(video_id, identity.id, body.content)


@router.patch("/comments/{comment_id}", response_model=CommentRead)
async def update_comment(
    comment_id: uuid.UUID,
    body: CommentUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: CommentService = Depends(_svc),
):
    return await svc.update_comment(comment_id, identity.id, body.content)


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: CommentService = Depends(_svc),
):
    await svc.delete_comment(comment_id, identity.id)
    return MessageResponse(message="Comment deleted")
