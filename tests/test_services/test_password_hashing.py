"""
Tests du hashing des mots de passe (bcrypt).

Les tests tournent avec BCRYPT_ROUNDS=4 (voir conftest).
"""

import pytest

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.security import hash_password, password_needs_rehash, verify_password
from app.core.security.hashing import BCRYPT_MAX_BYTES, hash_rounds


class TestHashPassword:

    def test_hash_uses_configured_cost(self):
        hashed = hash_password("password123")

        assert hash_rounds(hashed) == settings.BCRYPT_ROUNDS
        assert verify_password("password123", hashed)
        assert not verify_password("password124", hashed)

    def test_explicit_cost(self):
        assert hash_rounds(hash_password("password123", rounds=5)) == 5

    def test_password_over_bcrypt_limit_is_rejected(self):
        """Test qu'un mot de passe > 72 octets n'est pas tronqué silencieusement."""
        with pytest.raises(ValidationError):
            hash_password("é" * 37)  # 74 octets UTF-8

    def test_password_at_limit_is_accepted(self):
        password = "a" * BCRYPT_MAX_BYTES
        assert verify_password(password, hash_password(password))

    def test_long_candidate_never_matches(self):
        hashed = hash_password("a" * BCRYPT_MAX_BYTES)
        assert not verify_password("a" * (BCRYPT_MAX_BYTES + 1), hashed)

    def test_malformed_hash_never_matches(self):
        assert not verify_password("password123", "not-a-bcrypt-hash")


class TestRehash:

    def test_lower_cost_needs_rehash(self, monkeypatch):
        hashed = hash_password("password123", rounds=4)
        monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 5)

        assert password_needs_rehash(hashed)

    def test_current_cost_does_not_need_rehash(self):
        assert not password_needs_rehash(hash_password("password123"))

    def test_unreadable_hash_needs_rehash(self):
        assert hash_rounds("legacy") == 0
        assert password_needs_rehash("legacy")
