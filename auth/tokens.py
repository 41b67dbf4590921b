"""
auth/tokens.py -- JWT access tokens and opaque refresh-token generation.

Security design decisions:
  Access tokens: python-jose with HS256 over the standard header.payload.sig
       encoding, so any JWT library can read them. Claims are the registered
       ones only: sub (user UUID), iss, iat, exp. Tokens are stateless -- no
       server-side record exists, so one can only be "revoked" by rotating
       JWT_SECRET, which invalidates every outstanding token. The TTL is
       capped at one hour in core.config to bound that exposure window.

  Validation order is fixed so callers get the most specific error:
       MalformedToken -> InvalidSignature -> TokenExpired -> MalformedSubject.
       The expiry check runs against the caller-supplied `now` rather than
       jose's wall clock, so tests can advance time without sleeping.

  Refresh tokens: secrets.token_hex(32) gives 256 bits of entropy as 64
       lowercase hex chars. Persistence and lifecycle live in auth/refresh.py.

The secret, issuer and TTL are always passed in by the caller. This module
holds no configuration of its own.

Layer rule: no imports from api/ or chirps/. core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import jwt
from jose.exceptions import JWTClaimsError, JWTError

from auth.errors import InvalidSignature, MalformedSubject, MalformedToken, TokenExpired

logger = logging.getLogger("chirpy.auth.tokens")

ALGORITHM = "HS256"
DEFAULT_ISSUER = "chirpy"

_REQUIRED_CLAIMS = ("sub", "iss", "iat", "exp")

# jose checks exp against the real clock; expiry is checked here instead.
_DECODE_OPTIONS = {"verify_exp": False, "verify_aud": False}


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def issue_access_token(
    user_id: UUID,
    secret: str,
    ttl: timedelta,
    *,
    issuer: str = DEFAULT_ISSUER,
    now: datetime | None = None,
) -> str:
    """Encode a signed JWT asserting user_id for the next `ttl`.

    iat and exp are whole seconds, so ttl must be at least one second to keep
    exp strictly after iat.
    """
    if ttl < timedelta(seconds=1):
        raise ValueError("Access token ttl must be at least one second.")
    issued_at = now or datetime.now(timezone.utc)
    iat = int(issued_at.timestamp())
    payload = {
        "sub": str(user_id),
        "iss": issuer,
        "iat": iat,
        "exp": iat + int(ttl.total_seconds()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def validate_access_token(
    token: str,
    secret: str,
    *,
    issuer: str = DEFAULT_ISSUER,
    now: datetime | None = None,
) -> UUID:
    """Verify a JWT and return the user id it asserts.

    Accepts exactly when the token is well formed, signed with `secret`, and
    not past its exp claim at `now`.

    Raises:
        MalformedToken:   not a JWS, bad header/claims, wrong alg, or wrong issuer.
        InvalidSignature: the HMAC does not verify with `secret`.
        TokenExpired:     signature fine, but now > exp.
        MalformedSubject: everything else fine, but sub is not a UUID.
    """
    claims = _unverified_claims(token)

    try:
        jwt.decode(token, secret, algorithms=[ALGORITHM], options=_DECODE_OPTIONS)
    except JWTClaimsError as exc:
        raise MalformedToken(str(exc)) from exc
    except JWTError as exc:
        raise InvalidSignature() from exc

    current = (now or datetime.now(timezone.utc)).timestamp()
    if current > claims["exp"]:
        raise TokenExpired()

    if claims["iss"] != issuer:
        raise MalformedToken("Unexpected token issuer.")

    try:
        return UUID(claims["sub"])
    except ValueError as exc:
        raise MalformedSubject() from exc


def _unverified_claims(token: str) -> dict:
    """Parse header and claims without checking the signature.

    Any structural problem surfaces here as MalformedToken, before signature
    verification gets a chance to report it as InvalidSignature.
    """
    try:
        header = jwt.get_unverified_header(token)
        claims = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise MalformedToken(str(exc)) from exc

    if header.get("alg") != ALGORITHM:
        raise MalformedToken(f"Unsupported algorithm: {header.get('alg')!r}")
    missing = [c for c in _REQUIRED_CLAIMS if c not in claims]
    if missing:
        raise MalformedToken(f"Missing claims: {', '.join(missing)}")
    if not isinstance(claims["sub"], str):
        raise MalformedToken("sub claim must be a string.")
    for name in ("iat", "exp"):
        if not isinstance(claims[name], (int, float)) or isinstance(claims[name], bool):
            raise MalformedToken(f"{name} claim must be a NumericDate.")
    return claims


# ---------------------------------------------------------------------------
# Refresh token generation
# ---------------------------------------------------------------------------


def generate_refresh_token() -> str:
    """Return 32 random bytes as 64 lowercase hex characters."""
    return secrets.token_hex(32)
