"""
Favorite artists service.

Bookmarks are enriched with artist metadata fetched from the Artsy API at
creation time, so listing favorites never touches the upstream API.
"""

import structlog
from typing import List

from backend.src.errors import DuplicateFavoriteError, NotFoundError
from backend.src.models.favorite import Favorite
from backend.src.repositories.favorite_repo import FavoriteRepository
from backend.src.services.artsy_client import ArtsyGateway

logger = structlog.get_logger(__name__)


class FavoriteService:
    """Per-user bookmark operations."""

    def __init__(self, favorite_repo: FavoriteRepository, gateway: ArtsyGateway):
        self.favorite_repo = favorite_repo
        self.gateway = gateway

    async def list(self, user_id: str) -> List[Favorite]:
        """All favorites of ``user_id``, newest first."""
        return await self.favorite_repo.list_by_user(user_id)

    async def add(self, user_id: str, artist_id: str) -> Favorite:
        """
        Bookmark an artist.

        Args:
            user_id: Owner of the bookmark
            artist_id: Artsy artist id

        Returns:
            The stored favorite

        Raises:
            DuplicateFavoriteError: If the artist is already bookmarked
            UpstreamRequestError: If the artist lookup fails
        """
        if await self.favorite_repo.find(user_id, artist_id):
            logger.warning("favorite_duplicate", user_id=user_id, artist_id=artist_id)
            raise DuplicateFavoriteError()

        artist = await self.gateway.get_artist_details(artist_id)

        favorite = await self.favorite_repo.create(
            user_id=user_id,
            artist_id=artist_id,
            artist_name=artist.name,
            image_url=artist.image_url,
            nationality=artist.nationality,
            birthday=artist.birthday,
            deathday=artist.deathday,
        )
        logger.info("favorite_added", user_id=user_id, artist_id=artist_id)
        return favorite

    async def remove(self, user_id: str, artist_id: str) -> None:
        """
        Remove a bookmark.

        Raises:
            NotFoundError: If the artist is not bookmarked
        """
        removed = await self.favorite_repo.delete(user_id, artist_id)
        if removed is None:
            raise NotFoundError("Favorite not found")
        logger.info("favorite_removed", user_id=user_id, artist_id=artist_id)

    async def check(self, user_id: str, artist_id: str) -> bool:
        return await self.favorite_repo.find(user_id, artist_id) is not None
