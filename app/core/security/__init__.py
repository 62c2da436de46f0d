# app/core/security/__init__.py

# Hashing
from app.core.security.hashing import hash_password, password_needs_rehash, verify_password

# JWT
from app.core.security.jwt import create_access_token, verify_token

__all__ = [
    "hash_password", "verify_password", "password_needs_rehash",
    "create_access_token", "verify_token",
]
