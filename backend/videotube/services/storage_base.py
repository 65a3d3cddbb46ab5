"""
Object Storage Abstract Interface

Provides a unified interface for media storage providers (Cloudinary / others).
Uploads always consume a local staged file: the implementation deletes it
whether the upload succeeds or fails.
"""
import os
import tempfile
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

logger = logging.getLogger("uvicorn.error")

CHUNK_SIZE = 1024 * 1024  # 1 MB


@dataclass
class UploadedMedia:
    """Result of a successful upload"""
    url: str
    public_id: Optional[str] = None
    duration: Optional[float] = None  # Seconds, only reported for audio/video


class ObjectStorage(ABC):
    """Object Storage Abstract Base Class"""

    @abstractmethod
    async def upload(self, local_path: str, resource_type: str = "auto") -> UploadedMedia:
        """
        Upload a local file and remove it afterwards

        Parameters:
        - local_path: staged file on local disk (always deleted by this call)
        - resource_type: "image", "video" or "auto"

        Returns:
        - UploadedMedia with the public URL

        Raises:
        - UploadFailed / Timeout
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if storage credentials are configured"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., "Cloudinary")"""
        pass


def discard_local_file(path: str) -> None:
    """Delete a staged file, ignoring files that are already gone."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("[storage] could not remove staged file %s: %s", path, e)


async def stage_upload(upload: UploadFile, directory: str) -> str:
    """
    Copy an incoming multipart file to the staging directory.

    Returns the local path; the caller hands it to ObjectStorage.upload,
    which takes care of deleting it.
    """
    os.makedirs(directory, exist_ok=True)
    suffix = Path(upload.filename or "").suffix[:10]
    fd, path = tempfile.mkstemp(suffix=suffix, dir=directory)
    try:
        with os.fdopen(fd, "wb") as out:
            while chunk := await upload.read(CHUNK_SIZE):
                out.write(chunk)
    except BaseException:
        discard_local_file(path)
        raise
    return path


def has_file(upload: Optional[UploadFile]) -> bool:
    """True if a multipart field actually carried a file."""
    return upload is not None and bool(upload.filename)


async def upload_file(
    storage: ObjectStorage,
    upload: UploadFile,
    directory: str,
    resource_type: str = "auto",
) -> UploadedMedia:
    """Stage an incoming file locally, then push it to object storage."""
    path = await stage_upload(upload, directory)
    return await storage.upload(path, resource_type=resource_type)
