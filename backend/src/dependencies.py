"""
FastAPI dependency injection for storage, upstream access and sessions.

Provides injectable dependencies for:
- Database collections (pymongo async client held on app state)
- The Artsy gateway (shared HTTP client and token cache on app state)
- Repository and service instances
- Session resolution into an explicit AuthContext

All dependencies use FastAPI's dependency injection system and are designed
to be composable and testable via ``app.dependency_overrides``.
"""

import structlog
from typing import Optional
from fastapi import Cookie, Depends, Request
from pymongo.asynchronous.database import AsyncDatabase

from shared.logging import bind_context
from backend.src.config import get_settings, Settings
from backend.src.errors import AlreadyAuthenticatedError, AuthenticationError
from backend.src.models.auth import AuthContext
from backend.src.repositories.favorite_repo import FAVORITES_COLLECTION, FavoriteRepository
from backend.src.repositories.user_repo import USERS_COLLECTION, UserRepository
from backend.src.services.artsy_client import ArtsyGateway
from backend.src.services.auth_service import AuthService
from backend.src.services.favorite_service import FavoriteService

logger = structlog.get_logger(__name__)

SESSION_COOKIE = "token"


# ============================================================================
# SETTINGS AND SHARED RESOURCES
# ============================================================================


def get_settings_dependency() -> Settings:
    """
    Get application settings.

    Returns:
        Settings instance
    """
    return get_settings()


def get_database(request: Request) -> AsyncDatabase:
    """
    Get the MongoDB database opened during application startup.

    Raises:
        RuntimeError: If the application lifespan has not run
    """
    database = getattr(request.app.state, "database", None)
    if database is None:
        logger.error("database_not_initialized")
        raise RuntimeError("Database not initialized. The application lifespan must run first.")
    return database


def get_artsy_gateway(request: Request) -> ArtsyGateway:
    """
    Get the process-wide Artsy gateway.

    The gateway owns the token cache, so it is built once at startup and
    shared by every request.
    """
    gateway = getattr(request.app.state, "artsy_gateway", None)
    if gateway is None:
        logger.error("artsy_gateway_not_initialized")
        raise RuntimeError("Artsy gateway not initialized. The application lifespan must run first.")
    return gateway


# ============================================================================
# REPOSITORY AND SERVICE DEPENDENCIES
# ============================================================================


def get_user_repository(database: AsyncDatabase = Depends(get_database)) -> UserRepository:
    return UserRepository(database[USERS_COLLECTION])


def get_favorite_repository(database: AsyncDatabase = Depends(get_database)) -> FavoriteRepository:
    return FavoriteRepository(database[FAVORITES_COLLECTION])


def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    favorite_repo: FavoriteRepository = Depends(get_favorite_repository),
    settings: Settings = Depends(get_settings_dependency),
) -> AuthService:
    """
    Get authentication service with the request's repositories.

    Returns:
        Authentication service
    """
    return AuthService(user_repo, favorite_repo, settings)


def get_favorite_service(
    favorite_repo: FavoriteRepository = Depends(get_favorite_repository),
    gateway: ArtsyGateway = Depends(get_artsy_gateway),
) -> FavoriteService:
    return FavoriteService(favorite_repo, gateway)


# ============================================================================
# SESSION DEPENDENCIES
# ============================================================================


async def get_auth_context(
    token: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthContext:
    """
    Resolve the session cookie into the authenticated identity.

    Decodes the signed token and looks the referenced account up, so a
    deleted account invalidates outstanding cookies.

    Returns:
        Auth context for the current request

    Raises:
        AuthenticationError: If the cookie is missing, invalid, expired or
            refers to an account that no longer exists
    """
    if not token:
        logger.info("auth_missing_session_cookie")
        raise AuthenticationError()

    context = await auth_service.get_current_user(token)
    if context is None:
        raise AuthenticationError()

    bind_context(user_id=context.user_id)
    return context


async def require_anonymous(
    token: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE),
) -> None:
    """
    Reject requests that already carry a session cookie.

    Only the presence of the cookie is checked, not its validity.

    Raises:
        AlreadyAuthenticatedError: If a session cookie is present
    """
    if token:
        logger.info("auth_already_authenticated")
        raise AlreadyAuthenticatedError()
