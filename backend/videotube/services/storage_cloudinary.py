"""
Cloudinary Storage Adapter

Uploads staged files with the Cloudinary SDK (`cloudinary.uploader.upload`).
The SDK call is blocking, so it runs in a worker thread bounded by the
upload timeout.
"""
import asyncio
import logging
from typing import Optional

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from .storage_base import ObjectStorage, UploadedMedia, discard_local_file
from ..config import settings
from ..core.errors import Timeout, UploadFailed

logger = logging.getLogger("uvicorn.error")


class CloudinaryStorage(ObjectStorage):
    """Cloudinary upload API"""

    def __init__(self, timeout: Optional[float] = None):
        self.cloud_name = settings.cloudinary_cloud_name
        self.api_key = settings.cloudinary_api_key
        self.api_secret = settings.cloudinary_api_secret
        self.upload_prefix = settings.cloudinary_upload_prefix
        self.folder = settings.cloudinary_folder
        self.timeout = settings.upload_timeout_seconds if timeout is None else timeout

    @property
    def name(self) -> str:
        return "Cloudinary"

    def is_available(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def upload_options(self, resource_type: str) -> dict:
        """Per-call SDK options; credentials go here instead of the global cloudinary.config."""
        options = {
            "resource_type": resource_type,
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
            "secure": True,
            "timeout": self.timeout,
        }
        if self.folder:
            options["folder"] = self.folder
        if self.upload_prefix:
            options["upload_prefix"] = self.upload_prefix
        return options

    async def upload(self, local_path: str, resource_type: str = "auto") -> UploadedMedia:
        try:
            if not self.is_available():
                raise UploadFailed(f"{self.name}: credentials not configured")

            try:
                js = await asyncio.wait_for(
                    asyncio.to_thread(
                        cloudinary.uploader.upload, local_path, **self.upload_options(resource_type)
                    ),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("[storage] upload of %s timed out after %.0fs", local_path, self.timeout)
                raise Timeout("Upload to storage timed out")
            except (CloudinaryError, OSError, ValueError) as e:
                logger.warning("[storage] upload of %s failed: %s", local_path, e)
                raise UploadFailed()

            media_url = (js or {}).get("secure_url") or (js or {}).get("url")
            if not media_url:
                raise UploadFailed("Storage response did not include a URL")
            logger.info("[storage] uploaded %s -> %s", local_path, media_url)
            return UploadedMedia(
                url=media_url,
                public_id=js.get("public_id"),
                duration=js.get("duration"),
            )
        finally:
            discard_local_file(local_path)
