"""
Authentication service for user accounts and session tokens.

Provides:
- Password hashing and verification (passlib + bcrypt)
- Session token (JWT) creation and validation
- Registration, login and account deletion
- Resolution of a session token into an authenticated identity
"""

import structlog
from typing import Optional, Tuple
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import JWTError, jwt

from backend.src.config import Settings, get_settings
from backend.src.errors import DuplicateEmailError, InvalidCredentialsError
from backend.src.models.auth import (
    AuthContext, LoginRequest, RegisterRequest, TokenPayload, UserDB, UserResponse
)
from backend.src.repositories.favorite_repo import FavoriteRepository
from backend.src.repositories.user_repo import UserRepository
from backend.src.utils.gravatar import derive_avatar_url

logger = structlog.get_logger(__name__)


class AuthService:
    """Service for account and session operations."""

    def __init__(
        self,
        user_repo: UserRepository,
        favorite_repo: FavoriteRepository,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize auth service.

        Args:
            user_repo: User repository
            favorite_repo: Favorite repository, used to cascade account deletion
            settings: Application settings (defaults to the cached settings)
        """
        self.user_repo = user_repo
        self.favorite_repo = favorite_repo
        self.settings = settings or get_settings()

        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self.settings.password_bcrypt_rounds
        )

    def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        try:
            hashed = self.pwd_context.hash(password)
            logger.debug("password_hashed")
            return hashed
        except Exception as e:
            logger.error("password_hash_failed", error=str(e))
            raise

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password

        Returns:
            True if password matches, False otherwise
        """
        try:
            verified = self.pwd_context.verify(plain_password, hashed_password)
            logger.debug("password_verified", verified=verified)
            return verified
        except (ValueError, TypeError) as e:
            logger.error("password_verify_failed", error=str(e))
            return False

    def create_access_token(
        self,
        user_id: str,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a signed session token bound to ``user_id``.

        Args:
            user_id: User ID
            expires_delta: Custom expiration time (optional)

        Returns:
            JWT token string
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.settings.jwt_access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        expire = now + expires_delta

        payload = {
            "sub": user_id,
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp())
        }

        token = jwt.encode(
            payload,
            self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm
        )

        logger.info(
            "access_token_created",
            user_id=user_id,
            expires_in=expires_delta.total_seconds()
        )
        return token

    def decode_token(self, token: str) -> Optional[TokenPayload]:
        """
        Decode and validate a session token.

        Args:
            token: JWT token string

        Returns:
            Token payload or None if invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm]
            )
        except JWTError as e:
            logger.warning("token_decode_failed", error=str(e))
            return None

        sub = payload.get("sub")
        exp = payload.get("exp")
        if not isinstance(sub, str) or exp is None:
            logger.warning("token_claims_invalid")
            return None

        token_payload = TokenPayload(sub=sub, exp=exp, iat=payload.get("iat"))
        logger.debug("token_decoded", user_id=token_payload.sub)
        return token_payload

    async def register(self, request: RegisterRequest) -> Tuple[UserResponse, str]:
        """
        Create an account and open a session for it.

        Args:
            request: Validated registration data

        Returns:
            The new user and its session token

        Raises:
            DuplicateEmailError: If an account with this email exists
        """
        existing = await self.user_repo.get_user_by_email(request.email)
        if existing:
            logger.warning("registration_failed_email_taken")
            raise DuplicateEmailError()

        user = await self.user_repo.create_user(
            fullname=request.fullname,
            email=request.email,
            password_hash=self.hash_password(request.password),
            profile_image_url=derive_avatar_url(request.email) or "",
        )

        token = self.create_access_token(user.id)
        logger.info("user_registered", user_id=user.id)
        return UserResponse.from_db(user), token

    async def authenticate_user(self, login_request: LoginRequest) -> Optional[UserDB]:
        """
        Authenticate user with email and password.

        Args:
            login_request: Login credentials

        Returns:
            User if authenticated, None otherwise
        """
        user = await self.user_repo.get_user_by_email(login_request.email)

        if not user:
            logger.warning("authentication_failed_user_not_found")
            return None

        if not self.verify_password(login_request.password, user.password_hash):
            logger.warning("authentication_failed_invalid_password", user_id=user.id)
            return None

        logger.info("user_authenticated", user_id=user.id)
        return user

    async def login(self, login_request: LoginRequest) -> Tuple[UserResponse, str]:
        """
        Login user and create a session token.

        Args:
            login_request: Login credentials

        Returns:
            The user and its session token

        Raises:
            InvalidCredentialsError: Unknown email or wrong password (same error)
        """
        user = await self.authenticate_user(login_request)
        if not user:
            raise InvalidCredentialsError()

        token = self.create_access_token(user.id)
        logger.info("login_success", user_id=user.id)
        return UserResponse.from_db(user), token

    async def get_current_user(self, token: str) -> Optional[AuthContext]:
        """
        Resolve a session token into the authenticated identity.

        Args:
            token: JWT token string

        Returns:
            Auth context or None if the token is invalid or the user is gone
        """
        payload = self.decode_token(token)
        if not payload:
            logger.warning("get_current_user_failed_invalid_token")
            return None

        user = await self.user_repo.get_user_by_id(payload.sub)
        if not user:
            logger.warning("get_current_user_failed_user_not_found", user_id=payload.sub)
            return None

        logger.debug("current_user_retrieved", user_id=user.id)
        return AuthContext(user=UserResponse.from_db(user))

    async def delete_account(self, context: AuthContext) -> None:
        """
        Delete the authenticated account together with all its favorites.

        Args:
            context: Identity of the requesting user
        """
        removed = await self.favorite_repo.delete_all_for_user(context.user_id)
        await self.user_repo.delete_user(context.user_id)
        logger.info("account_deleted", user_id=context.user_id, favorites_removed=removed)
