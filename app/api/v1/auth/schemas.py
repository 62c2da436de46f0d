"""
Schémas Pydantic pour l'authentification.

Ce module définit les schémas de requête et réponse pour :
- Inscription (patient ou médecin)
- Connexion (identifiant / mot de passe)
- Tokens JWT
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from app.api.v1.user.schemas import UserResponse
from app.core.config import settings
from app.models import UserRole


# =============================================================================
# INSCRIPTION
# =============================================================================

class RegisterRequest(BaseModel):
    """
    Requête d'inscription.

    Le rôle admin ne peut pas être obtenu par inscription.
    """
    username: str = Field(..., min_length=3, max_length=100, description="Identifiant de connexion")
    password: str = Field(
        ...,
        min_length=settings.MIN_PASSWORD_LENGTH,
        description=f"Mot de passe (min {settings.MIN_PASSWORD_LENGTH} caractères)",
    )
    full_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    role: UserRole = Field(UserRole.PATIENT, description="patient ou doctor")
    specialty: Optional[str] = Field(None, max_length=100, description="Spécialité (médecins)")
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v or any(c.isspace() for c in v):
            raise ValueError("L'identifiant ne doit pas contenir d'espace")
        return v

    @model_validator(mode="after")
    def validate_role(self):
        if self.role == UserRole.ADMIN:
            raise ValueError("Le rôle admin ne peut pas être obtenu par inscription")
        return self


# =============================================================================
# CONNEXION
# =============================================================================

class LoginRequest(BaseModel):
    """Requête de connexion avec identifiant/mot de passe."""
    username: str = Field(..., min_length=1, description="Identifiant de connexion")
    password: str = Field(..., min_length=1, description="Mot de passe")


# =============================================================================
# TOKENS JWT
# =============================================================================

class TokenResponse(BaseModel):
    """Réponse contenant le token JWT d'accès."""
    access_token: str = Field(..., description="Token JWT d'accès")
    token_type: str = Field(default="Bearer", description="Type de token")
    expires_in: int = Field(..., description="Durée de validité en secondes")


class LoginResponse(BaseModel):
    """Réponse complète après connexion."""
    user: UserResponse
    tokens: TokenResponse
