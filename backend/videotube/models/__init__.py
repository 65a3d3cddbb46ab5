# videotube/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: Account, credentials, session token and watch history
- Subscription: Subscriber -> channel edge
- Video: Published media asset owned by a User
- Playlist: Ordered collection of videos owned by a User
"""
from .user import User
from .subscription import Subscription
from .video import Video
from .playlist import Playlist
