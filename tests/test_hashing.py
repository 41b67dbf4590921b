"""
tests/test_hashing.py -- Unit tests for auth/hashing.py.

Covers:
  - hash/verify round trip, wrong password rejected
  - salting: two hashes of the same password differ, never equal the plaintext
  - cost factor 10 by default
  - malformed stored hash -> MalformedHash, not a false match
  - entropy failure -> HashingInfraFailure
  - authenticate_user(): same error for unknown email and wrong password
"""

from __future__ import annotations

import pytest

import auth.hashing
from auth.errors import HashingInfraFailure, InvalidCredentials, MalformedHash, PasswordMismatch
from auth.hashing import _dummy_hash, authenticate_user, hash_password, verify_password

FAST = 4  # bcrypt's minimum cost keeps the suite quick


class TestHashPassword:
    def test_verify_accepts_original_password(self) -> None:
        hashed = hash_password("Password123", rounds=FAST)
        assert verify_password("Password123", hashed) is None

    def test_verify_rejects_other_password(self) -> None:
        hashed = hash_password("Password123", rounds=FAST)
        with pytest.raises(PasswordMismatch):
            verify_password("Password124", hashed)

    def test_hash_is_salted_and_not_plaintext(self) -> None:
        first = hash_password("Password123", rounds=FAST)
        second = hash_password("Password123", rounds=FAST)
        assert first != second
        assert first != "Password123"
        assert "Password123" not in first

    def test_default_cost_is_ten(self) -> None:
        hashed = hash_password("Password123")
        assert hashed.startswith("$2b$10$")

    def test_password_over_72_bytes_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            hash_password("x" * 73, rounds=FAST)

    def test_entropy_failure_raises_infra_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken_gensalt(rounds: int = 12, prefix: bytes = b"2b") -> bytes:
            raise OSError("urandom unavailable")

        monkeypatch.setattr("auth.hashing.bcrypt.gensalt", broken_gensalt)
        with pytest.raises(HashingInfraFailure) as exc_info:
            hash_password("Password123")
        assert exc_info.value.status_code == 500


class TestVerifyPassword:
    def test_malformed_hash_is_distinct_from_mismatch(self) -> None:
        with pytest.raises(MalformedHash):
            verify_password("Password123", "not-a-bcrypt-hash")

    def test_malformed_hash_is_not_a_mismatch(self) -> None:
        with pytest.raises(MalformedHash) as exc_info:
            verify_password("Password123", "$2b$10$short")
        assert not isinstance(exc_info.value, PasswordMismatch)

    def test_overlong_password_never_matches(self) -> None:
        hashed = hash_password("x" * 72, rounds=FAST)
        with pytest.raises(PasswordMismatch):
            verify_password("x" * 80, hashed)


class TestAuthenticateUser:
    def test_valid_credentials_return_user(self, auth_store) -> None:
        created = auth_store.create_user("walt@breakingbad.com", hash_password("04234", rounds=FAST))
        user = authenticate_user(auth_store, "walt@breakingbad.com", "04234")
        assert user.id == created.id

    def test_wrong_password_raises_invalid_credentials(self, auth_store) -> None:
        auth_store.create_user("walt@breakingbad.com", hash_password("04234", rounds=FAST))
        with pytest.raises(InvalidCredentials):
            authenticate_user(auth_store, "walt@breakingbad.com", "wrong")

    def test_unknown_email_raises_same_error(self, auth_store) -> None:
        with pytest.raises(InvalidCredentials) as exc_info:
            authenticate_user(auth_store, "nobody@example.com", "whatever")
        assert exc_info.value.code == "bad_credentials"

    @pytest.mark.parametrize("rounds", [FAST, 5])
    def test_unknown_email_burns_same_cost_as_stored_hashes(self, auth_store, monkeypatch, rounds) -> None:
        checked: list[str] = []
        real_verify = auth.hashing.verify_password

        def spy(plain: str, hashed: str) -> None:
            checked.append(hashed)
            real_verify(plain, hashed)

        monkeypatch.setattr(auth.hashing, "verify_password", spy)
        with pytest.raises(InvalidCredentials):
            authenticate_user(auth_store, "nobody@example.com", "whatever", rounds)
        assert len(checked) == 1
        assert checked[0].startswith(f"$2b${rounds:02d}$")
        assert checked[0] == _dummy_hash(rounds)
