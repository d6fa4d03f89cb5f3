"""Spool incoming multipart files to disk, push them to the media store,
and always remove the local copy afterwards."""

import uuid
from pathlib import Path
from typing import Optional

import structlog
from fastapi import UploadFile

from vidtube.errors import ValidationError
from vidtube.storage.media import MediaAsset, MediaStore

logger = structlog.get_logger()

CHUNK_SIZE = 1024 * 1024  # 1MB


def has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


async def spool_to_disk(upload: UploadFile, upload_dir: Path, max_bytes: int) -> Path:
    """Stream the upload to a uniquely named file under upload_dir."""
    upload_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix.lower()
    path = upload_dir / f"{uuid.uuid4().hex}{suffix}"

    size = 0
    try:
        with open(path, "wb") as f:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise ValidationError(
                        f"File too large (max {max_bytes // (1024 * 1024)} MB)"
                    )
                f.write(chunk)
    except BaseException:
        path.unlink(missing_ok=True)
        raise

    if size == 0:
        path.unlink(missing_ok=True)
        raise ValidationError(f"Uploaded file '{upload.filename}' is empty")
    return path


async def store_upload(
    media: MediaStore,
    upload: UploadFile,
    folder: str,
    upload_dir: Path,
    max_bytes: int,
) -> MediaAsset:
    """Spool, upload, clean up. Raises UpstreamFailure if the store fails."""
    path = await spool_to_disk(upload, upload_dir, max_bytes)
    try:
        return await media.upload(path, folder)
    finally:
        path.unlink(missing_ok=True)
        logger.debug("upload.local_file_removed", path=str(path))
