"""
Authentication router.

Provides REST API endpoints for:
- Registration and login (anonymous callers only)
- Current user lookup
- Logout and account deletion

Sessions travel in an httpOnly ``token`` cookie holding a signed JWT.
"""

import structlog
from fastapi import APIRouter, Depends, Response

from backend.src.config import Settings
from backend.src.dependencies import (
    SESSION_COOKIE,
    get_auth_context,
    get_auth_service,
    get_settings_dependency,
    require_anonymous,
)
from backend.src.models.auth import (
    AuthContext, LoginRequest, MessageResponse, RegisterRequest, UserEnvelope
)
from backend.src.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """Attach the session token; secure and cross-site only in production."""
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        SESSION_COOKIE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


@router.post(
    "/register",
    response_model=UserEnvelope,
    dependencies=[Depends(require_anonymous)],
)
async def register(
    body: RegisterRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings_dependency),
) -> UserEnvelope:
    """
    Register a new account and start a session.

    **Error Responses:**
    - 400: Validation error, duplicate email, or already authenticated
    """
    user, token = await auth_service.register(body)
    set_session_cookie(response, token, settings)
    return UserEnvelope(user=user)


@router.post(
    "/login",
    response_model=UserEnvelope,
    dependencies=[Depends(require_anonymous)],
)
async def login(
    body: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings_dependency),
) -> UserEnvelope:
    """
    Authenticate with email and password and start a session.

    **Error Responses:**
    - 400: Validation error, wrong credentials, or already authenticated
    """
    user, token = await auth_service.login(body)
    set_session_cookie(response, token, settings)
    return UserEnvelope(user=user)


@router.get("/me", response_model=UserEnvelope)
async def me(context: AuthContext = Depends(get_auth_context)) -> UserEnvelope:
    return UserEnvelope(user=context.user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    context: AuthContext = Depends(get_auth_context),
    settings: Settings = Depends(get_settings_dependency),
) -> MessageResponse:
    clear_session_cookie(response, settings)
    logger.info("user_logged_out", user_id=context.user_id)
    return MessageResponse(message="Logged out successfully")


@router.delete("/delete", response_model=MessageResponse)
async def delete_account(
    response: Response,
    context: AuthContext = Depends(get_auth_context),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings_dependency),
) -> MessageResponse:
    """Delete the account and all of its favorites, then end the session."""
    await auth_service.delete_account(context)
    clear_session_cookie(response, settings)
    return MessageResponse(message="Account deleted successfully")
