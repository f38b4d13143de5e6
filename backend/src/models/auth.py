"""
Authentication and user account models.

Provides Pydantic schemas for:
- Registration and login requests (with the field rules of the public API)
- Stored user documents and the public user view
- Session token payloads
- The per-request authentication context
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError


def normalize_email(email: str) -> str:
    """Emails are stored and compared trimmed and lowercased."""
    return email.strip().lower()


def _check_email(value: str) -> str:
    try:
        validate_email(value.strip())
    except (PydanticCustomError, ValueError):
        raise ValueError("Please include a valid email") from None
    return normalize_email(value)


class CamelModel(BaseModel):
    """Base for wire models: camelCase JSON, constructible by field name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Request Models
# ============================================================================


class RegisterRequest(BaseModel):
    """Registration request schema."""
    fullname: str = Field(default="", description="Full name")
    email: str = Field(default="", description="Email address")
    password: str = Field(default="", description="Password (minimum 4 characters)")

    @field_validator("fullname")
    @classmethod
    def validate_fullname(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 4:
            raise ValueError("Password must be at least 4 characters")
        return v

    model_config = {
        "validate_default": True,
        "json_schema_extra": {
            "example": {
                "fullname": "Ada Lovelace",
                "email": "ada@example.com",
                "password": "secret",
            }
        }
    }


class LoginRequest(BaseModel):
    """Login request schema."""
    email: str = Field(default="", description="Email address")
    password: Optional[str] = Field(default=None, description="Password")

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Password is required")
        return v

    model_config = {
        "validate_default": True,
        "json_schema_extra": {
            "example": {
                "email": "ada@example.com",
                "password": "secret",
            }
        }
    }


# ============================================================================
# Stored and Response Models
# ============================================================================


class UserDB(BaseModel):
    """User document as stored, including the password hash."""
    id: str
    fullname: str
    email: str
    password_hash: str
    profile_image_url: str = ""
    created_at: datetime


class UserResponse(CamelModel):
    """Public view of a user; never includes the password hash."""
    id: str
    fullname: str
    email: str
    profile_image_url: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_db(cls, user: UserDB) -> "UserResponse":
        return cls(
            id=user.id,
            fullname=user.fullname,
            email=user.email,
            profile_image_url=user.profile_image_url,
            created_at=user.created_at,
        )


class UserEnvelope(CamelModel):
    user: UserResponse


class MessageResponse(CamelModel):
    message: str


class TokenPayload(BaseModel):
    """Decoded session token claims."""
    sub: str
    exp: int
    iat: Optional[int] = None


# ============================================================================
# Request Authentication Context
# ============================================================================


class AuthContext(BaseModel):
    """
    Identity resolved from the session cookie for a single request.

    Built once by the authentication dependency and passed explicitly to
    route handlers and services.
    """

    model_config = ConfigDict(frozen=True)

    user: UserResponse

    @property
    def user_id(self) -> str:
        return self.user.id
