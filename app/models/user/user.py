"""
Modèle User - Identité et rôle.

Un utilisateur est patient, médecin ou administrateur. Son id est
référencé par AccessRequest.doctor_id / patient_id et AuditLog.user_id
sans contrainte d'intégrité : une référence orpheline se résout en
"utilisateur inconnu" (voir UNKNOWN_USER_NAME).
"""

from typing import Any, Dict, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.database.base_class import Base
from app.models.enums import UserRole
from app.models.mixins import CreatedAtMixin
from app.models.types import JSONSettings

# Libellé affiché à la place d'un utilisateur supprimé ou inexistant
UNKNOWN_USER_NAME = "Utilisateur inconnu"


class User(CreatedAtMixin, Base):
    """
    Utilisateur de la plateforme.

    Attributes:
        id: Identifiant unique (immuable)
        username: Identifiant de connexion (unique)
        password_hash: Hash bcrypt du mot de passe
        full_name: Nom complet
        email: Email (unique)
        role: patient | doctor | admin (immuable via l'API)
        specialty: Spécialité (médecins)
        phone: Téléphone
        user_settings: Préférences JSON versionnées (voir app.services.user_settings)
    """

    __tablename__ = "users"
    __table_args__ = {"comment": "Utilisateurs (patients, médecins, administrateurs)"}

    id: Mapped[int] = mapped_column(primary_key=True)

    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.PATIENT.value,
        index=True,
        info={"enum": [e.value for e in UserRole]},
    )

    specialty: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    user_settings: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSONSettings,
        nullable=True,
        doc="Préférences utilisateur (profil, sécurité, notifications)",
    )

    # === Propriétés ===

    @property
    def is_patient(self) -> bool:
        return self.role == UserRole.PATIENT.value

    @property
    def is_doctor(self) -> bool:
        return self.role == UserRole.DOCTOR.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def has_role(self, *roles: str) -> bool:
        """Retourne True si l'utilisateur possède l'un des rôles donnés."""
        return self.role in {UserRole(r).value for r in roles}

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role={self.role})>"
