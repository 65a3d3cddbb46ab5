# videotube/api/v1/deps.py
import uuid
from fastapi import Depends, Header, Request
from pydantic import BaseModel

from videotube.core.errors import InvalidInput, Unauthorized
from videotube.services import (
    ObjectStorage,
    RelationshipAggregator,
    TokenService,
    UserStore,
    get_object_storage,
    parse_uuid,
)


class UserIdentity(BaseModel):
    """Public identity attached to a request once its access token checks out."""
    id: str
    username: str
    email: str


# ----- collaborators (built once at startup, see videotube.main.build_services) -----
def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store

def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service

def get_relationships(request: Request) -> RelationshipAggregator:
    return request.app.state.relationships

def get_storage(request: Request) -> ObjectStorage:
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = get_object_storage()  # Unconfigured Cloudinary fails at upload time with UploadFailed
        request.app.state.storage = storage
    return storage


def _extract_token(request: Request, authorization: str | None) -> str | None:
    # 1) HttpOnly Cookie: accessToken takes precedence
    token = request.cookies.get("accessToken")
    # 2) Then Authorization: Bearer xxx
    if not token and authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    return token or None


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
) -> UserIdentity:
    """
    FastAPI dependency guarding protected routes.

    Extracts the access token from either:
    1. HttpOnly cookie (accessToken) - takes precedence
    2. Authorization header (Bearer token)

    On success the caller's public identity is stored on request.state.user
    and returned. Password hash and refresh token never leave this function.

    Raises:
        Unauthorized (401): token missing, malformed, expired, or user gone

    Usage:
        @router.get("/protected")
        async def protected_route(user: UserIdentity = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    token = _extract_token(request, authorization)
    if not token:
        raise Unauthorized("Unauthorized request")
    user = await tokens.verify_access(token)
    identity = UserIdentity(id=str(user.id), username=user.username, email=user.email)
    request.state.user = identity
    return identity


async def get_optional_user(
    request: Request,
    authorization: str | None = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
) -> UserIdentity | None:
    """
    Same as get_current_user but anonymous callers get None instead of 401.
    A token that is present but invalid still counts as anonymous.
    """
    try:
        return await get_current_user(request, authorization, tokens)
    except Unauthorized:
        return None


def parse_path_id(value: str, label: str) -> uuid.UUID:
    """Parse an id taken from the URL; malformed ids are a 400, not a 404."""
    parsed = parse_uuid(value)
    if parsed is None:
        raise InvalidInput(f"Invalid {label} ID")
    return parsed
