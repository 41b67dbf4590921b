"""
API request and response models for the Chirpy REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
chirps/models.py, which own the internal domain representation. Route
handlers map between the two.

No response model has a field for the password hash, so it cannot leak by
accident.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.hashing import MAX_PASSWORD_BYTES

MAX_CHIRP_LENGTH = 140


# ---------------------------------------------------------------------------
# Shared envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/healthz."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


# ---------------------------------------------------------------------------
# Users and sessions
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Request body for POST /api/users and PUT /api/users."""

    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """bcrypt only reads 72 bytes; reject longer passwords instead of truncating."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /api/login.

    expires_in_seconds may shorten the access-token lifetime below the
    configured maximum; it never extends it.
    """

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)
    expires_in_seconds: Optional[int] = None


class UserResponse(BaseModel):
    """A user as returned by the API."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str
    created_at: datetime
    updated_at: datetime
    is_chirpy_red: bool


class LoginResponse(UserResponse):
    """POST /api/login: the user plus a fresh access token and refresh token."""

    token: str
    refresh_token: str


class TokenResponse(BaseModel):
    """POST /api/refresh: a new access token. The refresh token is unchanged."""

    model_config = ConfigDict(frozen=True)

    token: str


# ---------------------------------------------------------------------------
# Chirps
# ---------------------------------------------------------------------------


class SortEnum(str, Enum):
    asc = "asc"
    desc = "desc"


class ChirpCreate(BaseModel):
    """Request body for POST /api/chirps. The owner comes from the token, never the body."""

    body: str = Field(min_length=1, max_length=MAX_CHIRP_LENGTH)


class ChirpResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    body: str
    user_id: UUID
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Polka webhook
# ---------------------------------------------------------------------------


class PolkaData(BaseModel):
    user_id: UUID


class PolkaWebhook(BaseModel):
    """Request body for POST /api/polka/webhooks."""

    event: str
    data: PolkaData
