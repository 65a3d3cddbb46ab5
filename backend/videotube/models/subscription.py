# videotube/models/subscription.py
"""
Database model for channel subscriptions.
A directed edge: `subscriber` follows the channel owned by `channel`.
"""
import uuid
from tortoise import fields, models

class Subscription(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    subscriber = fields.ForeignKeyField(
        "models.User",
        related_name="subscriptions",
        on_delete=fields.CASCADE,
    )  # The user who subscribes
    channel = fields.ForeignKeyField(
        "models.User",
        related_name="subscribers",
        on_delete=fields.CASCADE,
    )  # The user being subscribed to
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "subscriptions"
        # One edge per (subscriber, channel); counts rely on this
        unique_together = (("subscriber", "channel"),)
