"""
auth/errors.py -- Typed failures raised by the credential core.

Every rejection is a distinct exception class so the HTTP boundary can pick
the right status code without string matching. Nothing in auth/ returns None
or False to mean "rejected" -- it raises one of these.

Status mapping (applied by the AuthError handler in api/main.py):
  401 -- credential missing, malformed, badly signed, expired, revoked, unknown
  403 -- caller is authenticated but does not own the resource
  500 -- the hashing infrastructure itself failed

RefreshTokenError groups the three refresh-token lookup failures. They stay
distinct for logging but share one public code at the boundary, so a caller
cannot tell a revoked token from one that never existed.

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every credential and authorization failure."""

    status_code: int = 401
    code: str = "unauthorized"
    message: str = "Authentication required."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail


# ---------------------------------------------------------------------------
# Header extraction
# ---------------------------------------------------------------------------


class MissingCredential(AuthError):
    code = "missing_credential"
    message = "Authorization header is missing."


class MalformedScheme(AuthError):
    code = "malformed_scheme"
    message = "Authorization header has the wrong scheme or no credential."


class InvalidApiKey(AuthError):
    code = "invalid_api_key"
    message = "API key is invalid."


# ---------------------------------------------------------------------------
# Access tokens
# ---------------------------------------------------------------------------


class MalformedToken(AuthError):
    code = "malformed_token"
    message = "Access token is malformed."


class InvalidSignature(AuthError):
    code = "invalid_signature"
    message = "Access token signature is invalid."


class TokenExpired(AuthError):
    code = "token_expired"
    message = "Token has expired."


class MalformedSubject(AuthError):
    code = "malformed_subject"
    message = "Access token subject is not a valid user id."


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------


class RefreshTokenError(AuthError):
    public_code = "invalid_refresh_token"
    public_message = "Refresh token is invalid, expired, or revoked."


class TokenNotFound(RefreshTokenError):
    code = "token_not_found"
    message = "Refresh token not found."


class TokenRevoked(RefreshTokenError):
    code = "token_revoked"
    message = "Refresh token has been revoked."


class RefreshTokenExpired(RefreshTokenError, TokenExpired):
    code = "token_expired"
    message = "Refresh token has expired."


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


class InvalidCredentials(AuthError):
    code = "bad_credentials"
    message = "Incorrect email or password."


class PasswordMismatch(InvalidCredentials):
    pass


class MalformedHash(AuthError):
    code = "malformed_hash"
    message = "Stored password hash is not a valid bcrypt hash."


class HashingInfraFailure(AuthError):
    status_code = 500
    code = "internal_error"
    message = "Password hashing is unavailable."


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------


class OwnershipMismatch(AuthError):
    status_code = 403
    code = "forbidden"
    message = "You do not own this resource."
