"""
Relationship Aggregator

Read-only views joined across users, subscriptions and videos:
- channel_profile: public channel fields + subscriber counts + "am I subscribed"
- watch_history: the user's watched videos, in stored order, with owner info
"""
import asyncio
from typing import Any, List, Optional

from ..core.db import store_call
from ..core.errors import NotFound
from ..models.subscription import Subscription
from ..models.user import User
from ..models.video import Video
from .user_store import parse_uuid


class RelationshipAggregator:
    def __init__(self, timeout: float):
        self.timeout = timeout

    async def channel_profile(self, username: str, viewer_id: Optional[Any] = None) -> dict:
        """
        Build the channel page for `username` as seen by `viewer_id`.

        Returns:
        - Public profile fields plus subscribersCount,
          channelsSubscribedToCount and isSubscribed

        Raises:
        - NotFound: no user with that (case-insensitive) username
        """
        handle = (username or "").strip().lower()
        if not handle:
            raise NotFound("Channel does not exist")
        channel = await store_call(User.get_or_none(username=handle), self.timeout)
        if not channel:
            raise NotFound("Channel does not exist")

        viewer = parse_uuid(viewer_id)
        subscribers, subscribed_to, is_subscribed = await asyncio.gather(
            store_call(Subscription.filter(channel_id=channel.id).count(), self.timeout),
            store_call(Subscription.filter(subscriber_id=channel.id).count(), self.timeout),
            self._is_subscribed(viewer, channel.id),
        )
        return {
            **channel.to_public(),
            "subscribersCount": subscribers,
            "channelsSubscribedToCount": subscribed_to,
            "isSubscribed": is_subscribed,
        }

    async def _is_subscribed(self, viewer, channel_id) -> bool:
        if viewer is None:
            return False
        return await store_call(
            Subscription.filter(subscriber_id=viewer, channel_id=channel_id).exists(),
            self.timeout,
        )

    async def watch_history(self, user_id: Any) -> List[dict]:
        """
        Resolve the user's watch history.

        Order follows the stored list. Ids whose video has since been deleted
        are skipped. Each entry carries owner = {fullName, username, avatar}.

        Raises:
        - NotFound: user does not exist
        """
        uid = parse_uuid(user_id)
        user = await store_call(User.get_or_none(id=uid), self.timeout) if uid else None
        if not user:
            raise NotFound("User not found")

        ids = [parse_uuid(v) for v in (user.watch_history or [])]
        ids = [i for i in ids if i is not None]
        if not ids:
            return []

        videos = await store_call(
            Video.filter(id__in=ids).prefetch_related("owner"), self.timeout
        )
        by_id = {v.id: v for v in videos}
        history = []
        for vid in ids:
            video = by_id.get(vid)
            if video is None:
                continue
            history.append({**video.to_dict(), "owner": video.owner.to_owner()})
        return history
