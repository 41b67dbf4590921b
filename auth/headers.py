"""
auth/headers.py -- Pull caller credentials out of the Authorization header.

Two schemes are accepted:
  Authorization: Bearer <token>  -- access tokens and refresh tokens (the
                                    endpoint decides which, not the content)
  Authorization: ApiKey <key>    -- the Polka billing webhook only

Parsing is an exact, case-sensitive prefix match on "<Scheme> " followed by
a whitespace-trimmed credential. No splitting on spaces, so extra spaces
between scheme and credential are tolerated and "bearer x" is not.

headers can be anything with .get(): Starlette's case-insensitive Headers
in the app, a plain dict in unit tests.

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations

from collections.abc import Mapping

from auth.errors import MalformedScheme, MissingCredential

BEARER = "Bearer"
API_KEY = "ApiKey"


def _extract(headers: Mapping[str, str], scheme: str) -> str:
    value = (headers.get("Authorization") or "").strip()
    if not value:
        raise MissingCredential()
    prefix = f"{scheme} "
    if not value.startswith(prefix):
        raise MalformedScheme(f"Expected '{scheme} <credential>'.")
    credential = value[len(prefix) :].strip()
    if not credential:
        raise MalformedScheme(f"No credential after '{scheme}'.")
    return credential


def get_bearer_token(headers: Mapping[str, str]) -> str:
    return _extract(headers, BEARER)


def get_api_key(headers: Mapping[str, str]) -> str:
    return _extract(headers, API_KEY)
