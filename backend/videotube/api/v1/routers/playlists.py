# videotube/api/v1/routers/playlists.py
import logging
from fastapi import APIRouter, Depends

from videotube.api.v1.deps import UserIdentity, get_current_user, parse_path_id
from videotube.core.db import store_call
from videotube.core.errors import Conflict, Forbidden, InvalidInput, NotFound
from videotube.core.responses import ok
from videotube.models.playlist import Playlist
from videotube.models.video import Video
from videotube.schemas.playlist import PlaylistIn, PlaylistUpdateIn
from videotube.services import parse_uuid

router = APIRouter(prefix="/playlists", tags=["playlists"])

logger = logging.getLogger("uvicorn.error")


async def _owned_playlist(playlist_id: str, current: UserIdentity) -> Playlist:
    pid = parse_path_id(playlist_id, "playlist")
    playlist = await store_call(Playlist.get_or_none(id=pid))
    if not playlist:
        raise NotFound("Playlist not found")
    if str(playlist.owner_id) != current.id:
        raise Forbidden("Only the owner can modify this playlist")
    return playlist


@router.post("", status_code=201)
async def create_playlist(body: PlaylistIn, current: UserIdentity = Depends(get_current_user)):
    name = (body.name or "").strip()
    description = (body.description or "").strip()
    if not name or not description:
        raise InvalidInput("Name and description are required")
    playlist = await store_call(Playlist.create(
        name=name,
        description=description,
        owner_id=parse_uuid(current.id),
    ))
    return ok(playlist.to_dict(), "Playlist created successfully", 201)


@router.get("/user/{user_id}")
async def list_user_playlists(user_id: str):
    """A user's playlists, newest first."""
    uid = parse_path_id(user_id, "user")
    rows = await store_call(Playlist.filter(owner_id=uid).order_by("-created_at"))
    return ok([p.to_dict() for p in rows], "User playlists fetched")


@router.get("/{playlist_id}")
async def get_playlist(playlist_id: str):
    """
    Playlist with its videos resolved in playlist order.

    Videos deleted since they were added are left out of the response.
    """
    pid = parse_path_id(playlist_id, "playlist")
    playlist = await store_call(Playlist.get_or_none(id=pid).prefetch_related("owner"))
    if not playlist:
        raise NotFound("Playlist not found")

    ids = [i for i in (parse_uuid(v) for v in playlist.videos or []) if i is not None]
    videos = await store_call(Video.filter(id__in=ids)) if ids else []
    by_id = {v.id: v for v in videos}
    owner = playlist.owner
    return ok(
        {
            **playlist.to_dict(),
            "videos": [by_id[i].to_dict() for i in ids if i in by_id],
            "owner": {"id": str(owner.id), "username": owner.username, "avatar": owner.avatar},
        },
        "Playlist fetched",
    )


@router.patch("/{playlist_id}/videos/{video_id}")
async def add_video_to_playlist(
    playlist_id: str,
    video_id: str,
    current: UserIdentity = Depends(get_current_user),
):
    playlist = await _owned_playlist(playlist_id, current)
    vid = parse_path_id(video_id, "video")
    if not await store_call(Video.exists(id=vid)):
        raise NotFound("Video does not exist")
    videos = list(playlist.videos or [])
    if str(vid) in videos:
        raise Conflict("Video already exists in playlist")
    videos.append(str(vid))
    playlist.videos = videos
    await store_call(playlist.save())
    return ok(playlist.to_dict(), "Video added to playlist")


@router.delete("/{playlist_id}/videos/{video_id}")
async def remove_video_from_playlist(
    playlist_id: str,
    video_id: str,
    current: UserIdentity = Depends(get_current_user),
):
    playlist = await _owned_playlist(playlist_id, current)
    vid = parse_path_id(video_id, "video")
    playlist.videos = [v for v in (playlist.videos or []) if v != str(vid)]
    await store_call(playlist.save())
    return ok(playlist.to_dict(), "Video removed from playlist")


@router.patch("/{playlist_id}")
async def update_playlist(
    playlist_id: str,
    body: PlaylistUpdateIn,
    current: UserIdentity = Depends(get_current_user),
):
    playlist = await _owned_playlist(playlist_id, current)
    if (body.name or "").strip():
        playlist.name = body.name.strip()
    if (body.description or "").strip():
        playlist.description = body.description.strip()
    await store_call(playlist.save())
    return ok(playlist.to_dict(), "Playlist updated successfully")


@router.delete("/{playlist_id}")
async def delete_playlist(playlist_id: str, current: UserIdentity = Depends(get_current_user)):
    playlist = await _owned_playlist(playlist_id, current)
    await store_call(playlist.delete())
    logger.info("[playlists] deleted playlist=%s owner=%s", playlist_id, current.id)
    return ok({"id": playlist_id, "deleted": True}, "Playlist deleted successfully")
