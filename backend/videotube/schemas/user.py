"""
Pydantic schemas for account endpoints.
Fields are optional at the schema level; the routes validate presence
themselves so that missing values surface as InvalidInput (400) envelopes.
"""
from typing import Optional
from pydantic import BaseModel

__all__ = ["LoginIn", "RefreshIn", "ChangePasswordIn", "UpdateAccountIn"]


class LoginIn(BaseModel):
    """
    Request model for login.
    Exactly one of username / email identifies the account.
    """
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshIn(BaseModel):
    """Refresh token sent in the body when the cookie is unavailable."""
    refreshToken: Optional[str] = None


class ChangePasswordIn(BaseModel):
    oldPassword: Optional[str] = None
    newPassword: Optional[str] = None


class UpdateAccountIn(BaseModel):
    fullName: Optional[str] = None
    email: Optional[str] = None
