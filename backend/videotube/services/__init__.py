"""
Services Module

Collaborators the API routes delegate to:
- Credential Store: user lookups and single-row writes
- Token Service: access/refresh token issue, verify, rotate, revoke
- Relationship Aggregator: channel and watch-history read views
- Object Storage: media uploads (Cloudinary)
"""

from .user_store import UserStore, parse_uuid
from .token_service import TokenPair, TokenService
from .relationships import RelationshipAggregator

# Object storage
from .storage_base import (
    ObjectStorage,
    UploadedMedia,
    has_file,
    stage_upload,
    upload_file,
)
from .storage_factory import get_object_storage

__all__ = [
    "UserStore",
    "parse_uuid",
    "TokenPair",
    "TokenService",
    "RelationshipAggregator",
    "ObjectStorage",
    "UploadedMedia",
    "has_file",
    "stage_upload",
    "upload_file",
    "get_object_storage",
]
