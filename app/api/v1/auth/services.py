"""
Service d'authentification - Logique métier.

Ce module orchestre :
- L'inscription des patients et médecins
- L'authentification locale (identifiant/mot de passe)
- La génération des tokens JWT
- L'audit des connexions et déconnexions
"""

import logging
from typing import Optional

from app.api.v1.auth.schemas import LoginResponse, RegisterRequest, TokenResponse
from app.api.v1.user.schemas import UserResponse
from app.core.config import settings
from app.core.exceptions import ConflictError
from app.core.security import (
    create_access_token,
    hash_password,
    password_needs_rehash,
    verify_password,
)
from app.models import AuditAction, User
from app.services.audit import AuditLogger
from app.services.user_settings import UserSettings, dump_user_settings
from app.store import EntityStore

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class AuthenticationError(Exception):
    """Erreur d'authentification générique."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Identifiants invalides."""
    pass


# =============================================================================
# SERVICE D'AUTHENTIFICATION
# =============================================================================

class AuthService:
    """
    Service d'authentification.

    Usage:
        service = AuthService(store, audit_logger)
        user = service.authenticate("dr.smith", "password", ip_address)
        response = service.build_login_response(user)
    """

    def __init__(self, store: EntityStore, audit_logger: AuditLogger):
        self.store = store
        self.audit = audit_logger

    def register(self, data: RegisterRequest) -> User:
        """
        Crée un compte patient ou médecin.

        Raises:
            ConflictError: Identifiant ou email déjà utilisé
        """
        if self.store.get_user_by_username(data.username):
            raise ConflictError("Cet identifiant est déjà utilisé")
        if self.store.get_user_by_email(data.email):
            raise ConflictError("Cet email est déjà utilisé")

        user = self.store.create_user(
            User(
                username=data.username,
                password_hash=hash_password(data.password),
                full_name=data.full_name,
                email=data.email,
                role=data.role.value,
                specialty=data.specialty,
                phone=data.phone,
                user_settings=dump_user_settings(UserSettings()),
            )
        )
        logger.info(f"✅ Compte {user.role} créé : {user.username} (id={user.id})")
        return user

    def authenticate(self, username: str, password: str, ip_address: Optional[str] = None) -> User:
        """
        Authentifie un utilisateur avec identifiant/mot de passe.

        Le même message est renvoyé pour un identifiant inconnu et un
        mauvais mot de passe.
        """
        user = self.store.get_user_by_username(username)

        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"⚠️ Échec de connexion pour '{username}'")
            raise InvalidCredentialsError("Identifiant ou mot de passe incorrect")

        if password_needs_rehash(user.password_hash):
            user = self.store.update_user(user.id, password_hash=hash_password(password)) or user
            logger.info(f"🔐 Hash du mot de passe de {user.username} régénéré au coût courant")

        self.audit.log(user.id, AuditAction.LOGIN, f"User {user.username} logged in", ip_address)
        return user

    def logout(self, user: User, ip_address: Optional[str] = None) -> None:
        """Les tokens sont sans état : la déconnexion est uniquement auditée."""
        self.audit.log(user.id, AuditAction.LOGOUT, f"User {user.username} logged out", ip_address)

    # =========================================================================
    # GÉNÉRATION DE TOKENS JWT
    # =========================================================================

    def create_token_for_user(self, user: User) -> TokenResponse:
        access_token = create_access_token({
            "sub": str(user.id),
            "username": user.username,
            "role": user.role,
        })
        return TokenResponse(
            access_token=access_token,
            token_type="Bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    def build_login_response(self, user: User) -> LoginResponse:
        return LoginResponse(
            user=UserResponse.model_validate(user),
            tokens=self.create_token_for_user(user),
        )
