"""Media store: S3-compatible object storage for videos and images.

The API never serves media itself: uploads are spooled to a local temp
file, pushed to the bucket, and only the public url plus the object key
(public_id) are kept in the database. The key is what delete() takes.

boto3 is blocking, so every call runs in a worker thread.
"""

import asyncio
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import quote

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request

from vidtube.config import Settings
from vidtube.errors import UpstreamFailure

logger = structlog.get_logger()


@dataclass(frozen=True)
class MediaAsset:
    url: str
    public_id: str


class MediaStore(Protocol):
    async def upload(self, file_path: Path, folder: str) -> MediaAsset: ...

    async def delete(self, public_id: str) -> bool: ...


def _encode_object_key_for_url(object_key: str) -> str:
    """URL-encode each path segment, keeping the slashes."""
    return "/".join(quote(segment, safe="") for segment in object_key.split("/"))


class S3MediaStore:
    """Media store backed by an S3-compatible bucket (S3, R2, MinIO)."""

    def __init__(self, settings: Settings):
        if not settings.storage_bucket:
            raise ValueError("VIDTUBE_STORAGE_BUCKET is not set.")
        if not settings.storage_access_key_id or not settings.storage_secret_access_key:
            raise ValueError(
                "Storage credentials are missing. Set VIDTUBE_STORAGE_ACCESS_KEY_ID "
                "and VIDTUBE_STORAGE_SECRET_ACCESS_KEY."
            )

        self.bucket = settings.storage_bucket
        self.endpoint_url = settings.storage_endpoint_url or None
        self.public_url = settings.storage_public_url.rstrip("/")
        self.s3_client = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=settings.storage_access_key_id,
            aws_secret_access_key=settings.storage_secret_access_key,
            region_name=settings.storage_region,
            config=Config(signature_version="s3v4"),
        )
        logger.info("media.store_initialized", bucket=self.bucket)

    def _public_url(self, object_key: str) -> str:
        encoded = _encode_object_key_for_url(object_key)
        if self.public_url:
            return f"{self.public_url}/{encoded}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{encoded}"
        return f"https://{self.bucket}.s3.amazonaws.com/{encoded}"

    async def upload(self, file_path: Path, folder: str) -> MediaAsset:
        """Upload a local file; raises UpstreamFailure if the store rejects it."""
        object_key = f"{folder}/{uuid.uuid4().hex}{file_path.suffix.lower()}"
        content_type, _ = mimetypes.guess_type(file_path.name)
        extra_args = {"ContentType": content_type} if content_type else None
        try:
            await asyncio.to_thread(
                self.s3_client.upload_file,
                str(file_path),
                self.bucket,
                object_key,
                ExtraArgs=extra_args,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("media.upload_failed", key=object_key, error=str(e))
            raise UpstreamFailure("Failed to upload file to media storage")
        logger.info("media.uploaded", key=object_key)
        return MediaAsset(url=self._public_url(object_key), public_id=object_key)

    async def delete(self, public_id: str) -> bool:
        """Delete an object. True if deleted or already gone, False on error."""
        if not public_id:
            return False
        try:
            await asyncio.to_thread(
                self.s3_client.delete_object, Bucket=self.bucket, Key=public_id
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "NoSuchKey":
                return True
            logger.error("media.delete_failed", key=public_id, error=str(e))
            return False
        except BotoCoreError as e:
            logger.error("media.delete_failed", key=public_id, error=str(e))
            return False
        logger.info("media.deleted", key=public_id)
        return True


def build_media_store(settings: Settings) -> Optional[MediaStore]:
    """S3 store when a bucket is configured, otherwise None."""
    if not settings.storage_bucket:
        logger.warning("media.store_not_configured")
        return None
    return S3MediaStore(settings)


def get_media_store(request: Request) -> MediaStore:
    media = getattr(request.app.state, "media", None)
    if media is None:
        raise UpstreamFailure("Media storage is not configured")
    return media


async def delete_quietly(media: MediaStore, *public_ids: Optional[str]) -> None:
    """Best-effort cleanup after the database change is committed."""
    for public_id in public_ids:
        if not public_id:
            continue
        try:
            deleted = await media.delete(public_id)
        except Exception:
            logger.exception("media.cleanup_error", key=public_id)
            continue
        if not deleted:
            logger.warning("media.cleanup_failed", key=public_id)
