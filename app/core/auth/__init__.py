"""
Authentification - Dépendances FastAPI (JWT bearer).
"""

from app.core.auth.user_auth import bearer_scheme, get_current_user, require_role

__all__ = [
    "bearer_scheme",
    "get_current_user",
    "require_role",
]
