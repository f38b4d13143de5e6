"""
Favorite repository for database operations.

Stores one document per (user, artist) bookmark in the ``favorites``
collection. A unique compound index on ``(user_id, artist_id)`` guarantees a
user cannot bookmark the same artist twice.
"""

import structlog
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from backend.src.errors import DuplicateFavoriteError
from backend.src.models.favorite import Favorite
from backend.src.repositories.user_repo import to_object_id

logger = structlog.get_logger(__name__)

FAVORITES_COLLECTION = "favorites"


class FavoriteRepository:
    """Repository for favorite artist documents."""

    def __init__(self, collection: AsyncCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create the uniqueness and listing indexes (idempotent)."""
        await self.collection.create_index(
            [("user_id", ASCENDING), ("artist_id", ASCENDING)],
            unique=True,
            name="uniq_user_artist",
        )
        await self.collection.create_index(
            [("user_id", ASCENDING), ("added_at", DESCENDING)],
            name="user_added_at",
        )

    @staticmethod
    def _to_model(doc: Dict[str, Any]) -> Favorite:
        return Favorite(
            id=str(doc["_id"]),
            user_id=str(doc["user_id"]),
            artist_id=doc["artist_id"],
            artist_name=doc["artist_name"],
            image_url=doc.get("image_url") or "",
            nationality=doc.get("nationality") or "",
            birthday=doc.get("birthday") or "",
            deathday=doc.get("deathday") or "",
            added_at=doc["added_at"],
        )

    @staticmethod
    def _key(user_id: str, artist_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return {"user_id": oid, "artist_id": artist_id}

    async def list_by_user(self, user_id: str) -> List[Favorite]:
        """All favorites of a user, newest first."""
        oid = to_object_id(user_id)
        if oid is None:
            return []
        cursor = self.collection.find({"user_id": oid}).sort("added_at", DESCENDING)
        docs = await cursor.to_list(length=None)
        return [self._to_model(doc) for doc in docs]

    async def find(self, user_id: str, artist_id: str) -> Optional[Favorite]:
        key = self._key(user_id, artist_id)
        if key is None:
            return None
        doc = await self.collection.find_one(key)
        return self._to_model(doc) if doc else None

    async def create(
        self,
        user_id: str,
        artist_id: str,
        artist_name: str,
        image_url: str = "",
        nationality: str = "",
        birthday: str = "",
        deathday: str = "",
    ) -> Favorite:
        """
        Insert a favorite stamped with the current time.

        Raises:
            DuplicateFavoriteError: If the (user, artist) pair already exists
        """
        doc = {
            "user_id": to_object_id(user_id),
            "artist_id": artist_id,
            "artist_name": artist_name,
            "image_url": image_url,
            "nationality": nationality,
            "birthday": birthday,
            "deathday": deathday,
            "added_at": datetime.now(timezone.utc),
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.warning("favorite_already_exists", user_id=user_id, artist_id=artist_id)
            raise DuplicateFavoriteError()

        doc["_id"] = result.inserted_id
        logger.info("favorite_created", user_id=user_id, artist_id=artist_id)
        return self._to_model(doc)

    async def delete(self, user_id: str, artist_id: str) -> Optional[Favorite]:
        """Delete one favorite; returns the removed record or None."""
        key = self._key(user_id, artist_id)
        if key is None:
            return None
        doc = await self.collection.find_one_and_delete(key)
        return self._to_model(doc) if doc else None

    async def delete_all_for_user(self, user_id: str) -> int:
        """Delete every favorite of a user; returns how many were removed."""
        oid = to_object_id(user_id)
        if oid is None:
            return 0
        result = await self.collection.delete_many({"user_id": oid})
        logger.info("favorites_deleted_for_user", user_id=user_id, count=result.deleted_count)
        return result.deleted_count
