"""Favorite artist models."""

from datetime import datetime
from typing import List

from pydantic import Field

from backend.src.models.auth import CamelModel


class AddFavoriteRequest(CamelModel):
    artist_id: str = Field(default="", description="Artsy artist id")


class Favorite(CamelModel):
    """A user's bookmark of an Artsy artist with denormalized display fields."""
    id: str
    user_id: str
    artist_id: str
    artist_name: str
    image_url: str = ""
    nationality: str = ""
    birthday: str = ""
    deathday: str = ""
    added_at: datetime


class FavoriteEnvelope(CamelModel):
    favorite: Favorite


class FavoriteList(CamelModel):
    favorites: List[Favorite]


class FavoriteRemoved(CamelModel):
    message: str
    artist_id: str


class FavoriteStatus(CamelModel):
    is_favorite: bool
