"""
Module User API.

Expose les routes de profil, de préférences et les annuaires
médecins / patients.
"""
from app.api.v1.user.routes import router

__all__ = ["router"]
