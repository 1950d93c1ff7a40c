"""Tests for password hashing and strength validation."""

import pytest

from tuitionhub.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestHashing:
    def test_hash_is_argon2id(self):
        hashed = hash_password("Passw0rd123")
        assert hashed.startswith("$argon2id$")
        assert not check_needs_rehash(hashed)

    def test_verify(self):
        hashed = hash_password("Passw0rd123")
        assert verify_password("Passw0rd123", hashed)
        assert not verify_password("Passw0rd124", hashed)

    def test_verify_invalid_hash_returns_false(self):
        assert verify_password("Passw0rd123", "not-a-hash") is False


class TestStrength:
    def test_accepts_letters_and_digits(self):
        validate_password_strength("abcdefg1")

    @pytest.mark.parametrize(
        ("password", "message"),
        [
            ("", "empty"),
            ("        ", "empty"),
            ("abc1", "at least 8"),
            ("abcdefgh", "digit"),
            ("12345678", "letter"),
            ("a1" * 65, "exceed"),
        ],
    )
    def test_rejects_weak(self, password: str, message: str):
        with pytest.raises(PasswordStrengthError, match=message):
            validate_password_strength(password)

    def test_rejects_email_name(self):
        with pytest.raises(PasswordStrengthError, match="email name"):
            validate_password_strength("Ravi2024xyz", email="ravi@example.com")

    def test_short_email_name_ignored(self):
        validate_password_strength("ab12cd34", email="ab@example.com")
