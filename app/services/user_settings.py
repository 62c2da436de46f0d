"""
Préférences utilisateur - Schéma versionné unique.

La colonne users.user_settings contient un document JSON validé par
UserSettings. Contrat strict "parse-or-default" : un document valide est
retourné tel quel, tout le reste (NULL, JSON illisible, version inconnue,
champ inattendu) est remplacé par les valeurs par défaut.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

USER_SETTINGS_VERSION = 1


class ProfileSettings(BaseModel):
    """Informations de profil complémentaires (hors colonnes users)."""
    model_config = ConfigDict(extra="forbid")

    address: Optional[str] = None
    date_of_birth: Optional[str] = None
    profile_picture_url: Optional[str] = None
    bio: Optional[str] = None
    last_updated: Optional[datetime] = None


class SecuritySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    two_factor_enabled: bool = False
    required_reauth_for_sensitive: bool = True
    last_password_change: Optional[datetime] = None
    session_timeout: Optional[int] = Field(None, ge=1, description="Minutes")


class QuietHours(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    start: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    end: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    timezone: Optional[str] = None


class NotificationPreferences(BaseModel):
    """Préférences de notification (stockées seulement, aucun envoi)."""
    model_config = ConfigDict(extra="forbid")

    email_notifications: bool = True
    sms_notifications: bool = False
    access_request_alerts: bool = True
    security_alerts: bool = True
    new_record_alerts: bool = True
    system_updates: bool = True
    marketing_emails: bool = False
    communication_preference: Literal["email", "sms", "both", "none"] = "email"
    quiet_hours: QuietHours = Field(default_factory=QuietHours)


class UserSettings(BaseModel):
    """Document complet des préférences, version 1."""
    model_config = ConfigDict(extra="forbid")

    version: Literal[1] = USER_SETTINGS_VERSION
    profile: ProfileSettings = Field(default_factory=ProfileSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)


def parse_user_settings(raw: Any) -> UserSettings:
    """
    Parse strict ou valeurs par défaut.

    Args:
        raw: Contenu de la colonne (dict, chaîne JSON ou None)

    Returns:
        UserSettings validé, ou UserSettings() si raw est absent ou invalide
    """
    if raw is None or raw == "" or raw == {}:
        return UserSettings()

    try:
        if isinstance(raw, (str, bytes)):
            return UserSettings.model_validate_json(raw)
        return UserSettings.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"⚠️ Préférences invalides, valeurs par défaut appliquées ({e.error_count()} erreurs)")
        return UserSettings()


def dump_user_settings(settings: UserSettings) -> Dict[str, Any]:
    """Sérialise pour la colonne JSON."""
    return settings.model_dump(mode="json")


def with_notifications(raw: Any, changes: Dict[str, Any]) -> UserSettings:
    """
    Applique des modifications partielles aux préférences de notification.

    Raises:
        pydantic.ValidationError: Valeur ou clé invalide dans changes
    """
    current = parse_user_settings(raw)
    merged = current.notifications.model_dump()
    merged.update(changes)
    notifications = NotificationPreferences.model_validate(merged)
    return current.model_copy(update={"notifications": notifications})


def with_password_change(raw: Any, changed_at: datetime) -> UserSettings:
    current = parse_user_settings(raw)
    security = current.security.model_copy(update={"last_password_change": changed_at})
    return current.model_copy(update={"security": security})


def with_profile(raw: Any, changes: Dict[str, Any], updated_at: datetime) -> UserSettings:
    """Idem pour la section profil ; last_updated est renseigné."""
    current = parse_user_settings(raw)
    merged = current.profile.model_dump()
    merged.update(changes)
    merged["last_updated"] = updated_at
    profile = ProfileSettings.model_validate(merged)
    return current.model_copy(update={"profile": profile})
