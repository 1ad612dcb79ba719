"""Blob storage for uploaded media.

Uploads are first staged to a temporary local file, then handed to a
``BlobStore`` which returns the public URL. The default store keeps files on
local disk below ``UPLOAD_DIR`` and the app serves them as static files;
video durations come from ``ffprobe`` when it is installed, 0 otherwise.
"""
import logging
import os
import shutil
import subprocess
import tempfile
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile

from videotube_service.config import settings
from videotube_service.errors import BadRequest, Internal

logger = logging.getLogger(__name__)

RESOURCE_DIRS = {"image": "images", "video": "videos"}


@dataclass
class BlobRef:
    url: str
    public_id: str
    duration: Optional[float] = None


class BlobStore:
    def upload(self, local_path: str, resource_type: str = "image") -> BlobRef:
        raise NotImplementedError

    def delete(self, url: str, resource_type: str = "image") -> bool:
        raise NotImplementedError


def public_id_from_url(url: str) -> str:
    return os.path.splitext(url.rstrip("/").split("/")[-1])[0]


def read_duration(path: str) -> Optional[float]:
    """Length of a stored video in seconds, read with ffprobe.

    Returns None when ffprobe is not installed or cannot parse the file.
    """
    try:
        result = subprocess.run(
            [settings.ffprobe_bin, "-v", "error", "-show_entries", "format=duration",
             "-of", "default=noprint_wrappers=1:nokey=1", path],
            stdout=subprocess.PIPE, stderr=subprocess.PIPE, timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.warning("[Storage] Cannot read duration of %s: %s", path, exc)
        return None
    output = result.stdout.decode().strip()
    try:
        return float(output)
    except ValueError:
        logger.warning("[Storage] ffprobe gave no duration for %s: %r", path, output)
        return None


class LocalBlobStore(BlobStore):
    def __init__(self, root: str, url_prefix: str):
        self.root = root
        self.url_prefix = url_prefix.rstrip("/")
        for sub in RESOURCE_DIRS.values():
            os.makedirs(os.path.join(root, sub), exist_ok=True)

    def upload(self, local_path: str, resource_type: str = "image") -> BlobRef:
        sub = RESOURCE_DIRS.get(resource_type)
        if sub is None:
            raise BadRequest(f"Unsupported resource type {resource_type}")
        ext = os.path.splitext(local_path)[1]
        public_id = uuid.uuid4().hex
        target = os.path.join(self.root, sub, f"{public_id}{ext}")
        try:
            shutil.move(local_path, target)
        except OSError as exc:
            logger.error("[Storage] Failed to store %s: %s", local_path, exc, exc_info=True)
            raise Internal("Failed to store uploaded file")
        finally:
            # the staged file never outlives the upload attempt
            if os.path.exists(local_path):
                os.remove(local_path)
        logger.info("[Storage] Stored %s blob %s", resource_type, public_id)
        duration = read_duration(target) if resource_type == "video" else None
        return BlobRef(url=f"{self.url_prefix}/{sub}/{public_id}{ext}", public_id=public_id, duration=duration)

    def delete(self, url: str, resource_type: str = "image") -> bool:
        if not url:
            return False
        sub = RESOURCE_DIRS.get(resource_type, RESOURCE_DIRS["image"])
        name = url.rstrip("/").split("/")[-1]
        path = os.path.join(self.root, sub, name)
        if not os.path.exists(path):
            logger.warning("[Storage] Blob %s not found, nothing to delete", public_id_from_url(url))
            return False
        os.remove(path)
        logger.info("[Storage] Deleted %s blob %s", resource_type, public_id_from_url(url))
        return True


_blob_store = None


def get_blob_store() -> BlobStore:
    global _blob_store
    if _blob_store is None:
        _blob_store = LocalBlobStore(settings.upload_dir, settings.media_url_prefix)
    return _blob_store


async def stage_upload(upload: Optional[UploadFile]) -> Optional[str]:
    """Write an incoming multipart file to a temp path and return that path."""
    if upload is None or not upload.filename:
        return None
    ext = os.path.splitext(upload.filename)[1]
    fd, path = tempfile.mkstemp(suffix=ext, prefix="upload-")
    with os.fdopen(fd, "wb") as f:
        f.write(await upload.read())
    return path


async def store_upload(store: BlobStore, upload: Optional[UploadFile], resource_type: str) -> Optional[BlobRef]:
    path = await stage_upload(upload)
    if path is None:
        return None
    return store.upload(path, resource_type)
