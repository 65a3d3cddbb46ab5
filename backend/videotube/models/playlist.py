# videotube/models/playlist.py
import uuid
from tortoise import fields, models

class Playlist(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=128)
    description = fields.TextField()
    owner = fields.ForeignKeyField(
        "models.User",
        related_name="playlists",
        on_delete=fields.CASCADE,
    )
    videos = fields.JSONField(default=list)  # Ordered video ids, each at most once
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "playlists"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "owner": str(self.owner_id),
            "videos": list(self.videos or []),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
