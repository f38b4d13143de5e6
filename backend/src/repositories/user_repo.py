"""
User repository for database operations.

Provides async CRUD operations for user accounts stored in the MongoDB
``users`` collection (pymongo async API). Email uniqueness is enforced by a
unique index on the normalized address.
"""

import structlog
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from backend.src.errors import DuplicateEmailError
from backend.src.models.auth import UserDB, normalize_email

logger = structlog.get_logger(__name__)

USERS_COLLECTION = "users"


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a string id; None when it is not a valid ObjectId."""
    # ObjectId(None) would mint a fresh id
    if not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, collection: AsyncCollection):
        """
        Initialize user repository.

        Args:
            collection: The ``users`` collection
        """
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create the unique email index (idempotent)."""
        await self.collection.create_index(
            [("email", ASCENDING)], unique=True, name="uniq_email"
        )

    @staticmethod
    def _to_model(doc: Dict[str, Any]) -> UserDB:
        return UserDB(
            id=str(doc["_id"]),
            fullname=doc["fullname"],
            email=doc["email"],
            password_hash=doc["password_hash"],
            profile_image_url=doc.get("profile_image_url") or "",
            created_at=doc["created_at"],
        )

    async def create_user(
        self,
        fullname: str,
        email: str,
        password_hash: str,
        profile_image_url: str = "",
    ) -> UserDB:
        """
        Create a new user.

        Args:
            fullname: Display name
            email: Email address (normalized before storage)
            password_hash: Hashed password
            profile_image_url: Avatar URL

        Returns:
            Created user

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        doc = {
            "fullname": fullname.strip(),
            "email": normalize_email(email),
            "password_hash": password_hash,
            "profile_image_url": profile_image_url,
            "created_at": datetime.now(timezone.utc),
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.warning("email_already_exists", email=doc["email"])
            raise DuplicateEmailError()
        except Exception as e:
            logger.error("user_create_failed", error=str(e), email=doc["email"])
            raise

        doc["_id"] = result.inserted_id
        logger.info("user_created", user_id=str(result.inserted_id))
        return self._to_model(doc)

    async def get_user_by_id(self, user_id: str) -> Optional[UserDB]:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User or None if not found
        """
        oid = to_object_id(user_id)
        if oid is None:
            logger.debug("user_id_invalid", user_id=user_id)
            return None

        doc = await self.collection.find_one({"_id": oid})
        if not doc:
            logger.debug("user_not_found", user_id=user_id)
            return None
        return self._to_model(doc)

    async def get_user_by_email(self, email: str) -> Optional[UserDB]:
        """
        Get user by email (case-insensitive).

        Args:
            email: Email address

        Returns:
            User or None if not found
        """
        doc = await self.collection.find_one({"email": normalize_email(email)})
        if not doc:
            logger.debug("user_not_found_by_email")
            return None
        return self._to_model(doc)

    async def delete_user(self, user_id: str) -> bool:
        """
        Delete user.

        Args:
            user_id: User ID

        Returns:
            True if a user was deleted
        """
        oid = to_object_id(user_id)
        if oid is None:
            return False

        result = await self.collection.delete_one({"_id": oid})
        deleted = result.deleted_count > 0
        if deleted:
            logger.info("user_deleted", user_id=user_id)
        else:
            logger.warning("user_delete_not_found", user_id=user_id)
        return deleted
