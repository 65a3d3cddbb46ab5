# videotube/models/user.py
"""
Database model for users.
Represents a user account (channel) in the system, containing authentication
credentials, profile media, the current refresh token and watch history.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many Videos (one-to-many, via related_name="videos")
    - Has many Playlists (one-to-many, via related_name="playlists")
    - Subscribes to channels / is subscribed to (via Subscription edges)

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - Username and email are unique and stored lowercase
    - refresh_token holds the single active refresh token (null = no session)
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(max_length=64, unique=True, index=True)  # Lowercased login / channel handle
    email = fields.CharField(max_length=256, unique=True, index=True)  # Lowercased email address
    full_name = fields.CharField(max_length=128)
    password_hash = fields.CharField(max_length=255)  # Argon2 digest, never plain text
    avatar = fields.CharField(max_length=1024)  # Object storage URL
    cover_image = fields.CharField(max_length=1024, null=True)  # Object storage URL (optional)
    refresh_token = fields.TextField(null=True)  # Current refresh token, cleared on logout
    watch_history = fields.JSONField(default=list)  # Video ids, most recent first
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name

    def to_public(self) -> dict:
        """Profile fields that are safe to return to any client."""
        return {
            "id": str(self.id),
            "username": self.username,
            "email": self.email,
            "fullName": self.full_name,
            "avatar": self.avatar,
            "coverImage": self.cover_image,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def to_owner(self) -> dict:
        """Reduced projection attached to videos in watch history."""
        return {"fullName": self.full_name, "username": self.username, "avatar": self.avatar}
