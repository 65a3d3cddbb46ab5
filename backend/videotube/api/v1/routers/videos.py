# videotube/api/v1/routers/videos.py
import math
import logging
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from tortoise.expressions import F, Q

from videotube.api.v1.deps import (
    UserIdentity,
    get_current_user,
    get_optional_user,
    get_storage,
    get_user_store,
    parse_path_id,
)
from videotube.config import settings
from videotube.core.db import store_call
from videotube.core.errors import Forbidden, InvalidInput, NotFound
from videotube.core.responses import ok
from videotube.models.video import Video
from videotube.services import ObjectStorage, UserStore, has_file, parse_uuid, upload_file

router = APIRouter(prefix="/videos", tags=["videos"])

logger = logging.getLogger("uvicorn.error")

# Public sort keys -> model columns
SORT_FIELDS = {
    "createdAt": "created_at",
    "views": "views",
    "duration": "duration",
    "title": "title",
}

# Oldest entries fall off once a viewer's history reaches this length
WATCH_HISTORY_LIMIT = 100


def _video_with_owner(v: Video) -> dict:
    return {
        **v.to_dict(),
        "owner": {"id": str(v.owner.id), "username": v.owner.username, "avatar": v.owner.avatar},
    }

async def _owned_video(video_id: str, current: UserIdentity) -> Video:
    """Load a video for mutation: 404 if missing, 403 if someone else owns it."""
    vid = parse_path_id(video_id, "video")
    video = await store_call(Video.get_or_none(id=vid))
    if not video:
        raise NotFound("Video not found")
    if str(video.owner_id) != current.id:
        raise Forbidden("Only the owner can modify this video")
    return video

async def _record_watch(store: UserStore, user_id: str, video_id: str) -> None:
    """
    Move `video_id` to the front of the viewer's history, keeping at most
    WATCH_HISTORY_LIMIT entries.

    Read-then-write: two views by the same user racing each other keep the
    last write, so one of the two entries can be lost. No counter is derived
    from this list.
    """
    user = await store.find_by_id(user_id)
    if not user:
        return
    history = [video_id] + [h for h in (user.watch_history or []) if h != video_id]
    await store.update_fields(user.id, {"watch_history": history[:WATCH_HISTORY_LIMIT]})


@router.get("")
async def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    query: str | None = Query(default=None, description="Case-insensitive search in title/description"),
    sortBy: str = Query("createdAt"),
    sortType: str = Query("desc"),
    userId: str | None = Query(default=None, description="Only videos of this owner"),
):
    """
    Paginated list of published videos.

    Returns:
        dict: data with:
            - videos: page of video objects
            - totalDocs, limit, page, totalPages, hasNextPage, hasPrevPage

    Errors:
        - 400 InvalidInput: unknown sortBy/sortType, malformed userId, bad paging values
    """
    if sortBy not in SORT_FIELDS:
        raise InvalidInput(f"sortBy must be one of {', '.join(SORT_FIELDS)}")
    if sortType not in ("asc", "desc"):
        raise InvalidInput("sortType must be 'asc' or 'desc'")

    qs = Video.filter(is_published=True)
    if query:
        qs = qs.filter(Q(title__icontains=query) | Q(description__icontains=query))
    if userId:
        owner = parse_uuid(userId)
        if owner is None:
            raise InvalidInput("Invalid user ID")
        qs = qs.filter(owner_id=owner)

    order = ("-" if sortType == "desc" else "") + SORT_FIELDS[sortBy]
    total = await store_call(qs.count())
    rows = await store_call(qs.order_by(order, "id").offset((page - 1) * limit).limit(limit))
    total_pages = math.ceil(total / limit) if total else 0
    return ok(
        {
            "videos": [v.to_dict() for v in rows],
            "totalDocs": total,
            "limit": limit,
            "page": page,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
        },
        "Videos fetched",
    )


@router.post("/publish", status_code=201)
async def publish_video(
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    video: UploadFile | None = File(default=None),
    thumbnail: UploadFile | None = File(default=None),
    current: UserIdentity = Depends(get_current_user),
    storage: ObjectStorage = Depends(get_storage),
):
    """
    Publish a new video owned by the caller.

    Multipart form: title (required), description, video file, thumbnail file.
    Both files are uploaded before the record is created; the duration comes
    from the storage provider's response.
    """
    if not (title or "").strip():
        raise InvalidInput("Title is required")
    if not has_file(video) or not has_file(thumbnail):
        raise InvalidInput("Video and thumbnail files are required to publish a video")

    media = await upload_file(storage, video, settings.upload_tmp_dir, resource_type="video")
    thumb = await upload_file(storage, thumbnail, settings.upload_tmp_dir, resource_type="image")

    created = await store_call(Video.create(
        owner_id=parse_uuid(current.id),
        title=title.strip(),
        description=(description or "").strip(),
        video_file=media.url,
        thumbnail=thumb.url,
        duration=media.duration or 0,
    ))
    logger.info("[videos] published video=%s owner=%s", created.id, current.id)
    return ok(created.to_dict(), "Video published successfully", 201)


@router.get("/{video_id}")
async def get_video(
    video_id: str,
    viewer: UserIdentity | None = Depends(get_optional_user),
    store: UserStore = Depends(get_user_store),
):
    """
    Fetch one video and count the view.

    Every successful fetch increments `views` (no de-duplication).
    Unpublished videos are only visible to their owner.
    A signed-in viewer gets the video pushed to the front of their watch history.
    """
    vid = parse_path_id(video_id, "video")
    video = await store_call(Video.get_or_none(id=vid))
    if not video:
        raise NotFound("Video not found")
    if not video.is_published and (viewer is None or viewer.id != str(video.owner_id)):
        raise NotFound("Video not found")

    # Deleted between the lookup and here: no row updated, nothing to return
    if not await store_call(Video.filter(id=vid).update(views=F("views") + 1)):
        raise NotFound("Video not found")
    video = await store_call(Video.get_or_none(id=vid).prefetch_related("owner"))
    if not video:
        raise NotFound("Video not found")
    if viewer is not None:
        await _record_watch(store, viewer.id, str(vid))
    return ok(_video_with_owner(video), "Video fetched")


@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    thumbnail: UploadFile | None = File(default=None),
    current: UserIdentity = Depends(get_current_user),
    storage: ObjectStorage = Depends(get_storage),
):
    """Owner-only update of title, description and/or thumbnail. Blank values keep the old ones."""
    video = await _owned_video(video_id, current)
    if has_file(thumbnail):
        thumb = await upload_file(storage, thumbnail, settings.upload_tmp_dir, resource_type="image")
        video.thumbnail = thumb.url
    if (title or "").strip():
        video.title = title.strip()
    if (description or "").strip():
        video.description = description.strip()
    await store_call(video.save())
    return ok(video.to_dict(), "Video updated")


@router.delete("/{video_id}")
async def delete_video(video_id: str, current: UserIdentity = Depends(get_current_user)):
    video = await _owned_video(video_id, current)
    await store_call(video.delete())
    logger.info("[videos] deleted video=%s owner=%s", video_id, current.id)
    return ok({"id": video_id, "deleted": True}, "Video deleted")


@router.patch("/{video_id}/publish")
async def toggle_publish(video_id: str, current: UserIdentity = Depends(get_current_user)):
    video = await _owned_video(video_id, current)
    video.is_published = not video.is_published
    await store_call(video.save())
    return ok(video.to_dict(), "Publish status updated")
