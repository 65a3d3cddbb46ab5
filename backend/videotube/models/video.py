# videotube/models/video.py
"""
Database model for videos.
Holds the storage URLs of the media file and thumbnail plus listing metadata.
"""
import uuid
from tortoise import fields, models

class Video(models.Model):
    """
    Video database model.

    Only the owner may update, toggle or delete a video.
    `views` only grows; it is incremented on every fetch by id.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    owner = fields.ForeignKeyField(
        "models.User",
        related_name="videos",
        on_delete=fields.CASCADE,
    )
    title = fields.CharField(max_length=256)
    description = fields.TextField(default="")
    video_file = fields.CharField(max_length=1024)  # Object storage URL of the media
    thumbnail = fields.CharField(max_length=1024)   # Object storage URL of the thumbnail
    duration = fields.FloatField(default=0)          # Seconds, as reported by storage
    views = fields.IntField(default=0)
    is_published = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "videos"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "owner": str(self.owner_id),
            "title": self.title,
            "description": self.description,
            "videoFile": self.video_file,
            "thumbnail": self.thumbnail,
            "duration": self.duration,
            "views": self.views,
            "isPublished": self.is_published,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
