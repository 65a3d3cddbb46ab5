"""
Object Storage Factory

Uses Cloudinary for media uploads
"""
import logging
from .storage_base import ObjectStorage
from .storage_cloudinary import CloudinaryStorage

logger = logging.getLogger("uvicorn.error")


def get_object_storage() -> ObjectStorage:
    """
    Get object storage client

    Returns:
    - ObjectStorage: Cloudinary storage instance

    Note:
    - Need to configure CLOUDINARY_CLOUD_NAME / CLOUDINARY_API_KEY /
      CLOUDINARY_API_SECRET in .env
    - Without credentials the client is still returned; its uploads fail
      with UploadFailed, so request validation keeps running first
    """
    storage = CloudinaryStorage()
    if not storage.is_available():
        logger.warning(
            "[storage] %s not configured; uploads will fail until CLOUDINARY_* settings are set",
            storage.name,
        )
    else:
        logger.info("[storage] Using %s", storage.name)
    return storage
