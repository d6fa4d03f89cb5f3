"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.

Most routers mix public reads with owner-only writes, so auth is
declared per route with get_current_user / get_current_user_optional.
The likes router is entirely private and gets the auth dependency at
include time as well.
"""

from fastapi import APIRouter, Depends

from vidtube.api.comments import router as comments_router
from vidtube.api.dashboard import router as dashboard_router
from vidtube.api.health import router as health_router
from vidtube.api.likes import router as likes_router
from vidtube.api.playlists import router as playlists_router
from vidtube.api.subscriptions import router as subscriptions_router
from vidtube.api.tweets import router as tweets_router
from vidtube.api.users import router as users_router
from vidtube.api.videos import router as videos_router
from vidtube.auth.dependencies import get_current_user

_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(videos_router, tags=["videos"])
api_router.include_router(comments_router, tags=["comments"])
api_router.include_router(tweets_router, tags=["tweets"])
api_router.include_router(likes_router, tags=["likes"], dependencies=_auth)
api_router.include_router(subscriptions_router, tags=["subscriptions"])
api_router.include_router(playlists_router, tags=["playlists"])
api_router.include_router(dashboard_router, tags=["dashboard"])
