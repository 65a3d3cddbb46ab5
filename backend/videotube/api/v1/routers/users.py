# videotube/api/v1/routers/users.py
import logging
from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile

from videotube.api.v1.deps import (
    UserIdentity,
    get_current_user,
    get_relationships,
    get_storage,
    get_token_service,
    get_user_store,
)
from videotube.config import settings
from videotube.core.errors import Conflict, InvalidInput, NotFound, Unauthorized
from videotube.core.responses import ok
from videotube.core.security import hash_password, verify_password
from videotube.schemas.user import ChangePasswordIn, LoginIn, RefreshIn, UpdateAccountIn
from videotube.services import (
    ObjectStorage,
    RelationshipAggregator,
    TokenPair,
    TokenService,
    UserStore,
    has_file,
    upload_file,
)

router = APIRouter(prefix="/users", tags=["users"])

logger = logging.getLogger("uvicorn.error")


def _set_session_cookies(response: Response, pair: TokenPair) -> None:
    for name, value in (("accessToken", pair.access_token), ("refreshToken", pair.refresh_token)):
        response.set_cookie(
            name,
            value,
            httponly=True,
            secure=settings.cookie_secure,
            samesite=settings.cookie_samesite,
        )

def _clear_session_cookies(response: Response) -> None:
    response.delete_cookie("accessToken")
    response.delete_cookie("refreshToken")

async def _upload_image(storage: ObjectStorage, upload: UploadFile) -> str:
    media = await upload_file(storage, upload, settings.upload_tmp_dir, resource_type="image")
    return media.url


@router.post("/register", status_code=201)
async def register(
    username: str | None = Form(default=None),
    email: str | None = Form(default=None),
    fullName: str | None = Form(default=None),
    password: str | None = Form(default=None),
    avatar: UploadFile | None = File(default=None),
    coverImage: UploadFile | None = File(default=None),
    store: UserStore = Depends(get_user_store),
    storage: ObjectStorage = Depends(get_storage),
):
    """
    Register a new user account.

    Multipart form fields:
        - username, email, fullName, password: all required, non-blank
        - avatar: required image file
        - coverImage: optional image file

    Images are uploaded to object storage before the user row is written;
    if any upload fails no user is created.

    Returns (201):
        Public projection of the new user (no password hash, no refresh token)

    Errors:
        - 400 InvalidInput: blank field or missing avatar
        - 409 Conflict: username or email already registered
        - 502 UploadFailed / 504 Timeout: storage failure
    """
    if any(not (v or "").strip() for v in (username, email, fullName, password)):
        raise InvalidInput("All fields are required")
    if not has_file(avatar):
        raise InvalidInput("Avatar file is required")

    handle = username.strip().lower()
    mail = email.strip().lower()
    if await store.find_by_fields({"username": handle, "email": mail}, any_of=True):
        raise Conflict("User with this email or username already exists")

    avatar_url = await _upload_image(storage, avatar)
    cover_url = await _upload_image(storage, coverImage) if has_file(coverImage) else None

    user = await store.create(
        username=handle,
        email=mail,
        full_name=fullName.strip(),
        password_hash=hash_password(password),
        avatar=avatar_url,
        cover_image=cover_url,
    )
    logger.info("[users] registered user=%s username=%s", user.id, user.username)
    return ok(user.to_public(), "User registered successfully", 201)


@router.post("/login")
async def login(
    body: LoginIn,
    response: Response,
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Authenticate and open a session.

    Body: exactly one of `username` / `email`, plus `password`.

    Both tokens are returned in the body and also set as HttpOnly cookies
    (accessToken, refreshToken). Any previously issued refresh token stops
    working.

    Errors:
        - 400 InvalidInput: no identifier, both identifiers, or no password
        - 404 NotFound: no such user
        - 401 Unauthorized: wrong password
    """
    handle = (body.username or "").strip().lower()
    mail = (body.email or "").strip().lower()
    if bool(handle) == bool(mail):
        raise InvalidInput("Provide either username or email")
    if not body.password:
        raise InvalidInput("Password is required")

    user = await store.find_by_fields({"username": handle} if handle else {"email": mail})
    if not user:
        raise NotFound("User does not exist")
    if not verify_password(body.password, user.password_hash):
        raise Unauthorized("Invalid user credentials")

    pair = await tokens.issue(user.id)
    _set_session_cookies(response, pair)
    logger.info("[users] login user=%s", user.id)
    return ok(
        {"user": user.to_public(), "accessToken": pair.access_token, "refreshToken": pair.refresh_token},
        "User logged in successfully",
    )


@router.post("/logout")
async def logout(
    response: Response,
    current: UserIdentity = Depends(get_current_user),
    tokens: TokenService = Depends(get_token_service),
):
    """
    End the current session: clear the stored refresh token and both cookies.

    The access token itself stays valid until it expires; only refresh is cut off.
    """
    await tokens.revoke(current.id)
    _clear_session_cookies(response)
    logger.info("[users] logout user=%s", current.id)
    return ok({}, "User logged out")


@router.post("/refreshToken")
async def refresh_token(
    request: Request,
    response: Response,
    body: RefreshIn | None = None,
    tokens: TokenService = Depends(get_token_service),
):
    """
    Rotate the session using a refresh token (cookie first, then body).

    The presented token must match the one stored for the user; afterwards it
    is dead and only the returned refreshToken can be used.

    Errors:
        - 401 Unauthorized: missing, invalid, expired, revoked or reused token
    """
    presented = request.cookies.get("refreshToken") or (body.refreshToken if body else None)
    pair = await tokens.rotate(presented)
    _set_session_cookies(response, pair)
    return ok(
        {"accessToken": pair.access_token, "refreshToken": pair.refresh_token},
        "Access token refreshed",
    )


@router.get("/profile")
async def profile(
    current: UserIdentity = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    user = await store.find_by_id(current.id)
    if not user:
        raise NotFound("User not found")
    return ok(user.to_public(), "User profile fetched")


@router.post("/changePassword")
async def change_password(
    body: ChangePasswordIn,
    current: UserIdentity = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    """
    Change password for the logged-in user.

    The old password must verify against the stored hash. The new password is
    hashed exactly once here; the store writes the digest as given.

    Errors:
        - 400 InvalidInput: old or new password missing
        - 401 Unauthorized: old password is wrong
    """
    if not body.oldPassword or not (body.newPassword or "").strip():
        raise InvalidInput("Old and new password are required")
    user = await store.find_by_id(current.id)
    if not user:
        raise NotFound("User not found")
    if not verify_password(body.oldPassword, user.password_hash):
        raise Unauthorized("Invalid old password")

    await store.update_fields(user.id, {"password_hash": hash_password(body.newPassword)})
    return ok({}, "Password changed successfully")


@router.post("/changeAvatar")
async def change_avatar(
    avatar: UploadFile | None = File(default=None),
    current: UserIdentity = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
    storage: ObjectStorage = Depends(get_storage),
):
    if not has_file(avatar):
        raise InvalidInput("Avatar file is required")
    url = await _upload_image(storage, avatar)
    user = await store.update_fields(current.id, {"avatar": url})
    if not user:
        raise NotFound("User not found")
    return ok(user.to_public(), "Avatar updated successfully")


@router.post("/changeCoverImage")
async def change_cover_image(
    coverImage: UploadFile | None = File(default=None),
    current: UserIdentity = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
    storage: ObjectStorage = Depends(get_storage),
):
    if not has_file(coverImage):
        raise InvalidInput("Cover image file is required")
    url = await _upload_image(storage, coverImage)
    user = await store.update_fields(current.id, {"cover_image": url})
    if not user:
        raise NotFound("User not found")
    return ok(user.to_public(), "Cover image updated successfully")


@router.patch("/account")
async def update_account(
    body: UpdateAccountIn,
    current: UserIdentity = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    """Update full name and/or email. Blank values are ignored."""
    changes = {}
    if (body.fullName or "").strip():
        changes["full_name"] = body.fullName.strip()
    if (body.email or "").strip():
        mail = body.email.strip().lower()
        other = await store.find_by_fields({"email": mail})
        if other and str(other.id) != current.id:
            raise Conflict("Email already registered")
        changes["email"] = mail
    if not changes:
        raise InvalidInput("Nothing to update")

    user = await store.update_fields(current.id, changes)
    if not user:
        raise NotFound("User not found")
    return ok(user.to_public(), "Account details updated")


@router.get("/channel/{username}")
async def channel_profile(
    username: str,
    current: UserIdentity = Depends(get_current_user),
    relationships: RelationshipAggregator = Depends(get_relationships),
):
    data = await relationships.channel_profile(username, viewer_id=current.id)
    return ok(data, "Channel fetched")


@router.get("/watchHistory")
async def watch_history(
    current: UserIdentity = Depends(get_current_user),
    relationships: RelationshipAggregator = Depends(get_relationships),
):
    history = await relationships.watch_history(current.id)
    return ok(history, "Watch history fetched")
