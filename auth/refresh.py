"""
auth/refresh.py -- Lifecycle of long-lived opaque refresh tokens.

State machine (evaluated at read time, only "revoked" is ever stored):

    active --revoke()--> revoked      (terminal)
    active --time------> expired      (terminal, implicit at expires_at)

Renewal does not rotate: exchanging a refresh token for a new access token
leaves the refresh token usable until it expires or is revoked.

lookup() raises a distinct exception per failure for logging, but all three
derive from RefreshTokenError, which the API reports with one uniform code.
revoke() never raises for unknown or already-revoked tokens, so it cannot be
used to probe which tokens exist.

Nothing is cached: every lookup re-reads the row.

Layer rule: no imports from api/ or chirps/. core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from auth.errors import RefreshTokenExpired, TokenNotFound, TokenRevoked
from auth.models import RefreshToken, TokenState
from auth.store import AuthStore
from auth.tokens import generate_refresh_token
from core.clock import Clock, utc_now

logger = logging.getLogger("chirpy.auth.refresh")

DEFAULT_LIFETIME = timedelta(days=60)


def token_state(record: RefreshToken, now: datetime) -> TokenState:
    """Classify a stored record. A stored revocation outranks expiry."""
    if record.revoked_at is not None:
        return TokenState.revoked
    if now >= record.expires_at:
        return TokenState.expired
    return TokenState.active


class RefreshTokenStore:
    """Issue, look up, and revoke refresh tokens on top of an AuthStore.

    Usage:
        refresh = RefreshTokenStore(auth_store)
        record = refresh.issue(user.id)
        refresh.lookup(record.token).user_id   # -> user.id
        refresh.revoke(record.token)
    """

    def __init__(self, store: AuthStore, lifetime: timedelta = DEFAULT_LIFETIME, clock: Clock = utc_now) -> None:
        self._store = store
        self._lifetime = lifetime
        self._clock = clock

    def issue(self, user_id: UUID) -> RefreshToken:
        """Create and persist a fresh token for user_id, valid for the configured lifetime."""
        token = generate_refresh_token()
        now = self._clock()
        record = self._store.create_refresh_token(token, user_id, now + self._lifetime, created_at=now)
        logger.info("Issued refresh token %s... for user %s", token[:8], user_id)
        return record

    def state(self, token: str) -> TokenState:
        """Report the current state of a token. Raises TokenNotFound if it was never issued."""
        record = self._store.find_refresh_token(token)
        if record is None:
            raise TokenNotFound()
        return token_state(record, self._clock())

    def lookup(self, token: str) -> RefreshToken:
        """Return the record for an active token.

        Raises:
            TokenNotFound:       no such token.
            TokenRevoked:        revoke() was called on it.
            RefreshTokenExpired: now is at or past expires_at.
        """
        record = self._store.find_refresh_token(token)
        if record is None:
            raise TokenNotFound()
        state = token_state(record, self._clock())
        if state is TokenState.revoked:
            raise TokenRevoked()
        if state is TokenState.expired:
            raise RefreshTokenExpired()
        return record

    def revoke(self, token: str) -> None:
        """Revoke a token. Idempotent: unknown or already-revoked tokens are a silent no-op."""
        if self._store.revoke_token(token):
            logger.info("Revoked refresh token %s...", token[:8])
