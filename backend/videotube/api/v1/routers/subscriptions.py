# videotube/api/v1/routers/subscriptions.py
from fastapi import APIRouter, Depends
from tortoise.exceptions import IntegrityError

from videotube.api.v1.deps import UserIdentity, get_current_user, parse_path_id
from videotube.core.db import store_call
from videotube.core.errors import InvalidInput, NotFound
from videotube.core.responses import ok
from videotube.models.subscription import Subscription
from videotube.models.user import User
from videotube.services import parse_uuid

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("/c/{channel_id}")
async def toggle_subscription(channel_id: str, current: UserIdentity = Depends(get_current_user)):
    """
    Subscribe to a channel, or unsubscribe if already subscribed.

    Returns:
        dict: data with subscribed: bool (state after the toggle)

    Errors:
        - 400 InvalidInput: malformed id or subscribing to yourself
        - 404 NotFound: channel does not exist
    """
    cid = parse_path_id(channel_id, "channel")
    me = parse_uuid(current.id)
    if cid == me:
        raise InvalidInput("You cannot subscribe to your own channel")
    if not await store_call(User.exists(id=cid)):
        raise NotFound("Channel does not exist")

    removed = await store_call(Subscription.filter(subscriber_id=me, channel_id=cid).delete())
    if removed:
        return ok({"subscribed": False}, "Unsubscribed successfully")
    try:
        await store_call(Subscription.create(subscriber_id=me, channel_id=cid))
    except IntegrityError:
        # A concurrent request created the same edge; the unique constraint keeps one
        pass
    return ok({"subscribed": True}, "Subscribed successfully")


@router.get("/c/{channel_id}/subscribers")
async def list_subscribers(channel_id: str, current: UserIdentity = Depends(get_current_user)):
    cid = parse_path_id(channel_id, "channel")
    if not await store_call(User.exists(id=cid)):
        raise NotFound("Channel does not exist")
    edges = await store_call(
        Subscription.filter(channel_id=cid).order_by("-created_at").prefetch_related("subscriber")
    )
    return ok([e.subscriber.to_public() for e in edges], "Subscribers fetched")


@router.get("/u/{subscriber_id}")
async def list_subscribed_channels(subscriber_id: str, current: UserIdentity = Depends(get_current_user)):
    sid = parse_path_id(subscriber_id, "subscriber")
    edges = await store_call(
        Subscription.filter(subscriber_id=sid).order_by("-created_at").prefetch_related("channel")
    )
    return ok([e.channel.to_public() for e in edges], "Subscribed channels fetched")
