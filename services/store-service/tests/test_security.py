"""
Tests for password hashing.
"""

from unittest.mock import patch

import argon2
import pytest

import security
from exceptions import HashingError, ValidationError
from security import hash_password, verify_password


class TestPasswordHashing:

    def test_hash_is_argon2id_and_not_plaintext(self):
        hashed = hash_password("pw1")

        assert hashed != "pw1"
        assert hashed.startswith("$argon2id$")

    def test_hashes_are_salted(self):
        assert hash_password("pw1") != hash_password("pw1")

    def test_verify(self):
        hashed = hash_password("pw1")

        assert verify_password(hashed, "pw1") is True
        assert verify_password(hashed, "pw2") is False

    def test_empty_password_rejected(self):
        with pytest.raises(ValidationError):
            hash_password("")

    def test_empty_password_never_verifies(self):
        assert verify_password(hash_password("pw1"), "") is False

    def test_malformed_stored_hash(self):
        with pytest.raises(HashingError):
            verify_password("not-a-hash", "pw1")

    def test_hasher_failure_is_wrapped(self):
        with patch.object(security, "password_hasher") as mock_hasher:
            mock_hasher.hash.side_effect = argon2.exceptions.HashingError("out of memory")

            with pytest.raises(HashingError):
                hash_password("pw1")
