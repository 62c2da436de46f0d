"""
Schémas Pydantic pour le module User.

Contient les schémas pour :
- User (profil, mise à jour)
- UserSummary (résumé embarqué dans les listes)
- Changement de mot de passe
- Préférences de notification
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.config import settings


# =============================================================================
# USER SCHEMAS
# =============================================================================

class UserResponse(BaseModel):
    """Schéma de réponse pour un utilisateur (jamais de hash de mot de passe)."""
    id: int
    username: str
    full_name: str
    email: str
    role: str
    specialty: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserSummaryResponse(BaseModel):
    """Résumé d'un utilisateur ; full_name vaut "Utilisateur inconnu" si supprimé."""
    id: int
    username: Optional[str] = None
    full_name: str
    role: Optional[str] = None
    email: Optional[str] = None
    specialty: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    """Mise à jour du profil. Le rôle n'est pas modifiable."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    specialty: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=500)
    date_of_birth: Optional[str] = Field(None, max_length=20)
    bio: Optional[str] = Field(None, max_length=2000)

    model_config = ConfigDict(extra="forbid")


# Champs stockés dans users.user_settings.profile plutôt qu'en colonnes
PROFILE_SETTINGS_FIELDS = frozenset({"address", "date_of_birth", "bio"})


class PasswordChangeRequest(BaseModel):
    """Requête de changement de mot de passe."""
    current_password: str = Field(..., min_length=1, description="Mot de passe actuel")
    new_password: str = Field(
        ...,
        min_length=settings.MIN_PASSWORD_LENGTH,
        description=f"Nouveau mot de passe (min {settings.MIN_PASSWORD_LENGTH} caractères)",
    )


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# NOTIFICATION PREFERENCES SCHEMAS
# =============================================================================

class QuietHoursUpdate(BaseModel):
    enabled: bool = False
    start: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    end: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    timezone: Optional[str] = None


class NotificationPreferencesUpdate(BaseModel):
    """Mise à jour partielle des préférences de notification."""
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    access_request_alerts: Optional[bool] = None
    security_alerts: Optional[bool] = None
    new_record_alerts: Optional[bool] = None
    system_updates: Optional[bool] = None
    marketing_emails: Optional[bool] = None
    communication_preference: Optional[Literal["email", "sms", "both", "none"]] = None
    quiet_hours: Optional[QuietHoursUpdate] = None

    model_config = ConfigDict(extra="forbid")


class NotificationPreferencesResponse(BaseModel):
    email_notifications: bool
    sms_notifications: bool
    access_request_alerts: bool
    security_alerts: bool
    new_record_alerts: bool
    system_updates: bool
    marketing_emails: bool
    communication_preference: str
    quiet_hours: QuietHoursUpdate

    model_config = ConfigDict(from_attributes=True)
