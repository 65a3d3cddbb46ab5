"""
Pydantic schemas for playlist endpoints.
"""
from typing import Optional
from pydantic import BaseModel

__all__ = ["PlaylistIn", "PlaylistUpdateIn"]


class PlaylistIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class PlaylistUpdateIn(BaseModel):
    """Only provided, non-blank fields are applied."""
    name: Optional[str] = None
    description: Optional[str] = None
