"""
Token Service

Issues, verifies, rotates and revokes the access/refresh token pair.

Session model: one active refresh token per user, stored on the User row.
Issuing a new pair overwrites the stored value, which invalidates every
refresh token handed out before it. Logging out clears the field.
"""
import hmac
import logging
import datetime as dt
from dataclasses import dataclass
from typing import Any, Optional

import jwt  # PyJWT

from ..core.errors import NotFound, Unauthorized
from ..core.security import sign_token, verify_token
from ..models.user import User
from .user_store import UserStore

logger = logging.getLogger("uvicorn.error")

ACCESS = "access"
REFRESH = "refresh"


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """Signed token lifecycle bound to the Credential Store"""

    def __init__(
        self,
        store: UserStore,
        access_secret: str,
        access_ttl: dt.timedelta,
        refresh_secret: str,
        refresh_ttl: dt.timedelta,
    ):
        self.store = store
        self.access_secret = access_secret
        self.access_ttl = access_ttl
        self.refresh_secret = refresh_secret
        self.refresh_ttl = refresh_ttl

    def _mint(self, user: User) -> TokenPair:
        access = sign_token(
            {"sub": str(user.id), "username": user.username, "email": user.email, "type": ACCESS},
            self.access_secret,
            self.access_ttl,
        )
        refresh = sign_token({"sub": str(user.id), "type": REFRESH}, self.refresh_secret, self.refresh_ttl)
        return TokenPair(access_token=access, refresh_token=refresh)

    def _decode(self, token: str, secret: str, expected_type: str) -> dict:
        label = "Access" if expected_type == ACCESS else "Refresh"
        try:
            payload = verify_token(token, secret)
        except jwt.ExpiredSignatureError:
            raise Unauthorized(f"{label} token expired")
        except jwt.InvalidTokenError:
            raise Unauthorized(f"Invalid {label.lower()} token")
        if payload.get("type") != expected_type or not payload.get("sub"):
            raise Unauthorized(f"Invalid {label.lower()} token")
        return payload

    async def issue(self, user_id: Any) -> TokenPair:
        """
        Mint a new pair for `user_id` and persist its refresh token.

        Raises:
        - NotFound: user does not exist
        """
        user = await self.store.find_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        pair = self._mint(user)
        await self.store.update_fields(user.id, {"refresh_token": pair.refresh_token})
        return pair

    async def verify_access(self, token: Optional[str]) -> User:
        """
        Resolve an access token to its user.

        Raises:
        - Unauthorized: missing, tampered, expired, wrong type, or unknown user
        """
        if not token:
            raise Unauthorized("Unauthorized request")
        payload = self._decode(token, self.access_secret, ACCESS)
        user = await self.store.find_by_id(payload["sub"])
        if not user:
            raise Unauthorized("Invalid access token")
        return user

    async def rotate(self, presented: Optional[str]) -> TokenPair:
        """
        Exchange a refresh token for a fresh pair.

        The presented token must be the value currently stored on the user.
        The new value is written with a compare-and-set on the old one, so of
        two concurrent rotations with the same token exactly one succeeds.

        Raises:
        - Unauthorized: missing/invalid/expired token, unknown user,
          or a token that is no longer the stored one (reuse after rotation
          or logout)
        """
        if not presented:
            raise Unauthorized("Refresh token is required")
        payload = self._decode(presented, self.refresh_secret, REFRESH)
        user = await self.store.find_by_id(payload["sub"])
        if not user:
            raise Unauthorized("Invalid refresh token")
        stored = user.refresh_token or ""
        if not hmac.compare_digest(stored.encode(), presented.encode()):
            logger.warning("[tokens] stale refresh token presented for user=%s", user.id)
            raise Unauthorized("Refresh token is expired or used")

        pair = self._mint(user)
        updated = await self.store.update_fields(
            user.id,
            {"refresh_token": pair.refresh_token},
            where={"refresh_token": presented},
        )
        if updated is None:
            logger.warning("[tokens] concurrent rotation lost for user=%s", user.id)
            raise Unauthorized("Refresh token is expired or used")
        return pair

    async def revoke(self, user_id: Any) -> None:
        """Clear the stored refresh token. Safe to call when none is stored."""
        await self.store.update_fields(user_id, {"refresh_token": None})
