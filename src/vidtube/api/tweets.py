"""Tweet API routes."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.auth.dependencies import CurrentIdentity, get_current_user
from vidtube.db.engine import get_db
from vidtube.errors import NotFound
from vidtube.schemas.common import MessageResponse
from vidtube.schemas.tweet import TweetCreate, TweetRead, TweetUpdate
from vidtube.services.tweet_service import TweetService

router = APIRouter(prefix="/tweets")


def _svc(db: AsyncSession = Depends(get_db)) -> TweetService:
    return TweetService(db)


@router.post("", response_model=TweetRead, status_code=201)
async def create_tweet(
    body: TweetCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TweetService = Depends(_svc),
):
    return await svc.create_tweet(identity.id, body.content)


@router.get("/user/{username}", response_model=list[TweetRead])
async def list_user_tweets(username: str, svc: TweetService = Depends(_svc)):
    return await svc.list_user_tweets(username)


@router.get("/{tweet_id}", response_model=TweetRead)
async def get_tweet(tweet_id: uuid.UUID, svc: TweetService = Depends(_svc)):
    tweet = await svc.get_tweet(tweet_id)
    if not tweet:
        raise NotFound("Tweet not found")
    return tweet


@router.patch("/{tweet_id}", response_model=TweetRead)
async def update_tweet(
    tweet_id: uuid.UUID,
    body: TweetUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TweetService = Depends(_svc),
):
    return await svc.update_tweet(tweet_id, identity.id, body.content)


@router.delete("/{tweet_id}", response_model=MessageResponse)
async def delete_tweet(
    tweet_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TweetService = Depends(_svc),
):
    await svc.delete_tweet(tweet_id, identity.id)
    return MessageResponse(message="Tweet deleted")
