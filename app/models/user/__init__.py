"""
User models - Utilisateurs.

Ce module contient :
- User : Patients, médecins et administrateurs
"""

from app.models.user.user import User, UNKNOWN_USER_NAME

__all__ = [
    "User",
    "UNKNOWN_USER_NAME",
]
