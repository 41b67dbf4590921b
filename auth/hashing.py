"""
auth/hashing.py -- bcrypt password hashing and timing-equalized login.

Passwords: bcrypt directly (no passlib wrapper). gensalt(rounds) embeds a
fresh random salt and the cost in every hash, so two hashes of the same
password differ and verification needs nothing but the stored string.
Cost 10 keeps one verification in the tens of milliseconds.

Verification never answers "match" for a hash it cannot parse: a broken
stored value raises MalformedHash, a wrong password raises PasswordMismatch.

bcrypt only looks at the first 72 bytes of a password, and bcrypt 5.x
refuses longer input outright. The API caps passwords at 72 bytes; this
module rejects longer input explicitly rather than truncating.

Hashing is synchronous and deliberately slow. Callers must not hold a lock
shared with other requests while calling it.

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt

from auth.errors import HashingInfraFailure, InvalidCredentials, MalformedHash, PasswordMismatch

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import AuthStore

logger = logging.getLogger("chirpy.auth.hashing")

DEFAULT_ROUNDS = 10
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Raises HashingInfraFailure if the OS entropy source is unavailable --
    that is a service-health fault, never a reason to store a weaker hash.
    """
    raw = plain.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes.")
    try:
        salt = bcrypt.gensalt(rounds=rounds)
    except (OSError, NotImplementedError) as exc:
        logger.error("Entropy source unavailable while hashing a password: %s", exc)
        raise HashingInfraFailure() from exc
    return bcrypt.hashpw(raw, salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> None:
    """Check a plaintext password against a stored bcrypt hash.

    Returns None on a match. bcrypt.checkpw does the constant-time compare.

    Raises:
        PasswordMismatch: the password does not match.
        MalformedHash:    hashed is not a structurally valid bcrypt hash.
    """
    raw = plain.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        # Never hashed by hash_password(), so it cannot match anything stored.
        raise PasswordMismatch()
    try:
        ok = bcrypt.checkpw(raw, hashed.encode("utf-8"))
    except ValueError as exc:
        raise MalformedHash() from exc
    if not ok:
        raise PasswordMismatch()


# Timing equalization dummy hashes, one per bcrypt cost.
# authenticate_user() verifies against the one matching the cost real hashes
# are stored at, so response time does not reveal which emails exist. The
# default cost is warmed at module load so the first login is not slower.
@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    return hash_password("chirpy_timing_dummy", rounds)


_dummy_hash(DEFAULT_ROUNDS)


def authenticate_user(store: AuthStore, email: str, password: str, rounds: int = DEFAULT_ROUNDS) -> User:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the user exists. `rounds` must be the
    cost new hashes are stored at. Unknown email and wrong password both
    raise InvalidCredentials with the same message.
    """
    user = store.get_by_email(email)
    if user is None:
        try:
            verify_password(password, _dummy_hash(rounds))
        except PasswordMismatch:
            pass
        raise InvalidCredentials()
    try:
        verify_password(password, user.hashed_password)
    except PasswordMismatch as exc:
        raise InvalidCredentials() from exc
    return user
