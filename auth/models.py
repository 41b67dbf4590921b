"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the
refresh-token service do the work; these only own the shape.

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


@dataclass
class User:
    """An account holder.

    hashed_password is always a bcrypt hash, never the plaintext. It is
    never serialized into an API response -- api/models.UserResponse has no
    field for it.

    is_chirpy_red is the premium-membership flag, set only by the Polka
    billing webhook.
    """

    id: UUID
    email: str
    hashed_password: str
    created_at: datetime
    updated_at: datetime
    is_chirpy_red: bool = False


@dataclass
class RefreshToken:
    """A long-lived opaque renewal credential.

    token is the primary key: 32 random bytes as 64 lowercase hex chars.
    revoked_at is None while the token is usable; once set it never clears.
    Expiry is not stored as a state -- it is evaluated against expires_at on
    every lookup.
    """

    token: str
    user_id: UUID
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None


class TokenState(str, Enum):
    active = "active"
    revoked = "revoked"
    expired = "expired"
