"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Three credential flows, each ending in a typed AuthError on failure:
  get_current_user_id()   -- Bearer access token (JWT) -> user UUID
  get_refresh_token()     -- Bearer refresh token (opaque hex) -> raw token string
  require_polka_key()     -- ApiKey header == settings.polka_key

Errors are raised, not converted here: the AuthError handler in api/main.py
maps them to 401/403/500 with the structured error envelope.

Everything the helpers need (settings, stores, clock) is read from
request.app.state, which the app lifespan populates. Nothing is global.

Layer rule: no imports from api/ or chirps/.
  auth/dependencies.py may import from fastapi because this module is part
  of the FastAPI dependency injection system.
"""

from __future__ import annotations

import hmac
import logging
from datetime import timedelta
from uuid import UUID

from fastapi import Request

from auth.errors import AuthError, InvalidApiKey
from auth.headers import get_api_key, get_bearer_token
from auth.tokens import validate_access_token

logger = logging.getLogger("chirpy.auth")


def get_current_user_id(request: Request) -> UUID:
    """Require a valid access token. Returns the user id it asserts.

    Use as a FastAPI dependency:
        @router.post("/chirps")
        async def route(user_id: UUID = Depends(get_current_user_id)): ...
    """
    settings = request.app.state.settings
    try:
        token = get_bearer_token(request.headers)
        return validate_access_token(
            token,
            settings.jwt_secret,
            issuer=settings.jwt_issuer,
            now=request.app.state.clock(),
        )
    except AuthError as exc:
        logger.info("Access token rejected on %s %s: %s", request.method, request.url.path, exc.code)
        raise


def get_refresh_token(request: Request) -> str:
    """Return the raw refresh token from the Bearer header.

    Only extraction happens here; the route decides whether it is looking
    the token up (refresh) or revoking it (revoke).
    """
    return get_bearer_token(request.headers)


def require_polka_key(request: Request) -> None:
    """Require the Polka webhook API key. Constant-time compare.

    An unset POLKA_KEY rejects every call rather than accepting an empty key.
    """
    expected = request.app.state.settings.polka_key
    key = get_api_key(request.headers)
    if not expected:
        logger.warning("Polka webhook called but POLKA_KEY is not configured")
        raise InvalidApiKey()
    if not hmac.compare_digest(key.encode("utf-8"), expected.encode("utf-8")):
        logger.info("Polka webhook rejected: API key mismatch")
        raise InvalidApiKey()


def access_token_ttl(request: Request, requested_seconds: int | None = None) -> timedelta:
    """Return the access-token lifetime for a login.

    Clients may ask for a shorter lifetime than the configured one, never a
    longer one.
    """
    limit = request.app.state.settings.access_token_ttl_seconds
    if requested_seconds is None or requested_seconds <= 0 or requested_seconds > limit:
        return timedelta(seconds=limit)
    return timedelta(seconds=requested_seconds)
