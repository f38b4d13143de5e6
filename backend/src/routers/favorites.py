"""
Favorites router.

All endpoints require an authenticated session and operate on the caller's
own bookmarks.
"""

import structlog
from fastapi import APIRouter, Depends, status

from backend.src.dependencies import get_auth_context, get_favorite_service
from backend.src.errors import ValidationError
from backend.src.models.artsy import is_artsy_id
from backend.src.models.auth import AuthContext
from backend.src.models.favorite import (
    AddFavoriteRequest,
    FavoriteEnvelope,
    FavoriteList,
    FavoriteRemoved,
    FavoriteStatus,
)
from backend.src.services.favorite_service import FavoriteService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get("", response_model=FavoriteList)
async def list_favorites(
    context: AuthContext = Depends(get_auth_context),
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteList:
    """The caller's favorites, newest first."""
    return FavoriteList(favorites=await service.list(context.user_id))


@router.post("", response_model=FavoriteEnvelope, status_code=status.HTTP_201_CREATED)
async def add_favorite(
    body: AddFavoriteRequest,
    context: AuthContext = Depends(get_auth_context),
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteEnvelope:
    """
    Bookmark an artist.

    **Error Responses:**
    - 400: Missing or malformed artist id, or artist already bookmarked
    """
    artist_id = body.artist_id.strip()
    if not artist_id:
        raise ValidationError("Artist ID is required")
    if not is_artsy_id(artist_id):
        raise ValidationError("Artist ID is invalid")

    favorite = await service.add(context.user_id, artist_id)
    return FavoriteEnvelope(favorite=favorite)


@router.delete("/{artist_id}", response_model=FavoriteRemoved)
async def remove_favorite(
    artist_id: str,
    context: AuthContext = Depends(get_auth_context),
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteRemoved:
    await service.remove(context.user_id, artist_id)
    return FavoriteRemoved(message="Removed from favorites", artist_id=artist_id)


@router.get("/check/{artist_id}", response_model=FavoriteStatus)
async def check_favorite(
    artist_id: str,
    context: AuthContext = Depends(get_auth_context),
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteStatus:
    return FavoriteStatus(is_favorite=await service.check(context.user_id, artist_id))
