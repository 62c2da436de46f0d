"""
Services métier pour le module User.

Contient la logique pour :
- Mise à jour du profil (colonnes + section profile des préférences)
- Changement de mot de passe
- Préférences de notification

Les contrôles "soi-même ou admin" passent par la passerelle d'autorisation
pour que les refus soient journalisés comme les autres.
"""
import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.api.v1.user.schemas import (
    NotificationPreferencesUpdate,
    PROFILE_SETTINGS_FIELDS,
    UserUpdate,
)
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.security import hash_password, verify_password
from app.models import AuditAction, User, UserRole
from app.models.types import utcnow
from app.services.access_control import AuthorizationGate
from app.services.audit import AuditLogger
from app.services.user_settings import (
    NotificationPreferences,
    dump_user_settings,
    parse_user_settings,
    with_notifications,
    with_password_change,
    with_profile,
)
from app.store import EntityStore

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class InvalidPasswordError(Exception):
    """Mot de passe actuel incorrect."""
    pass


# =============================================================================
# USER SERVICE
# =============================================================================

class UserService:
    """Service pour la gestion des profils utilisateurs."""

    def __init__(self, store: EntityStore, gate: AuthorizationGate, audit_logger: AuditLogger):
        self.store = store
        self.gate = gate
        self.audit = audit_logger

    def _get_or_404(self, user_id: int) -> User:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"Utilisateur {user_id} non trouvé")
        return user

    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        return self.store.list_users(role.value if role else None)

    def update_profile(
            self,
            caller: User,
            user_id: int,
            data: UserUpdate,
            ip_address: Optional[str] = None,
    ) -> User:
        """Met à jour le profil (soi-même ou admin)."""
        self.gate.ensure_self_or_admin(caller, user_id, "update profile", ip_address)
        user = self._get_or_404(user_id)

        update_data = data.model_dump(exclude_unset=True)
        profile_changes = {k: update_data.pop(k) for k in list(update_data) if k in PROFILE_SETTINGS_FIELDS}

        if "email" in update_data:
            existing = self.store.get_user_by_email(update_data["email"])
            if existing is not None and existing.id != user_id:
                raise ConflictError("Cet email est déjà utilisé")

        if profile_changes:
            update_data["user_settings"] = dump_user_settings(
                with_profile(user.user_settings, profile_changes, utcnow())
            )

        if not update_data:
            return user

        updated = self.store.update_user(user_id, **update_data)
        self.audit.log(
            caller.id,
            AuditAction.PROFILE_UPDATED,
            f"Profile of user {user_id} updated ({', '.join(sorted(data.model_fields_set))})",
            ip_address,
        )
        return updated

    def change_password(
            self,
            caller: User,
            user_id: int,
            current_password: str,
            new_password: str,
            ip_address: Optional[str] = None,
    ) -> None:
        """
        Change le mot de passe.

        Le mot de passe actuel est exigé, y compris pour un admin agissant
        sur son propre compte ; un admin réinitialisant le compte d'un autre
        utilisateur n'a pas à le connaître.
        """
        self.gate.ensure_self_or_admin(caller, user_id, "change password", ip_address)
        user = self._get_or_404(user_id)

        if caller.id == user_id and not verify_password(current_password, user.password_hash):
            raise InvalidPasswordError("Mot de passe actuel incorrect")

        if current_password == new_password:
            raise ValidationError("Le nouveau mot de passe doit être différent de l'actuel")

        now = utcnow()
        self.store.update_user(
            user_id,
            password_hash=hash_password(new_password),
            user_settings=dump_user_settings(with_password_change(user.user_settings, now)),
        )
        self.audit.log(
            caller.id,
            AuditAction.PASSWORD_CHANGED,
            f"Password of user {user_id} changed",
            ip_address,
        )
        logger.info(f"🔑 Mot de passe modifié pour l'utilisateur {user_id}")

    def get_notifications(
            self,
            caller: User,
            user_id: int,
            ip_address: Optional[str] = None,
    ) -> NotificationPreferences:
        self.gate.ensure_self_or_admin(caller, user_id, "view notification preferences", ip_address)
        user = self._get_or_404(user_id)
        return parse_user_settings(user.user_settings).notifications

    def update_notifications(
            self,
            caller: User,
            user_id: int,
            data: NotificationPreferencesUpdate,
            ip_address: Optional[str] = None,
    ) -> NotificationPreferences:
        self.gate.ensure_self_or_admin(caller, user_id, "update notification preferences", ip_address)
        user = self._get_or_404(user_id)

        changes = data.model_dump(exclude_unset=True)
        try:
            settings = with_notifications(user.user_settings, changes)
        except PydanticValidationError as e:
            raise ValidationError(f"Préférences invalides : {e.error_count()} erreur(s)") from e

        self.store.update_user(user_id, user_settings=dump_user_settings(settings))
        self.audit.log(
            caller.id,
            AuditAction.NOTIFICATION_PREFERENCES_UPDATED,
            f"Notification preferences of user {user_id} updated ({', '.join(sorted(changes))})",
            ip_address,
        )
        return settings.notifications
