"""
Modèle AccessRequest - Demandes d'accès d'un médecin au dossier d'un patient.

Ce module définit la table `access_requests`, entité centrale du contrôle
d'accès : un accès courant n'est jamais stocké comme un drapeau, il est
dérivé des demandes au statut `approved` dont l'expiration n'est pas atteinte.
L'historique est conservé : un médecin peut avoir plusieurs demandes
pour le même patient.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database.base_class import Base
from app.models.enums import AccessRequestStatus
from app.models.mixins import VersionedMixin
from app.models.types import UTCDateTime, utcnow


class AccessRequest(VersionedMixin, Base):
    """
    Demande d'accès d'un médecin aux dossiers d'un patient.

    Invariants:
        - doctor_id, patient_id, purpose et duration sont immuables
        - expiry_date est renseignée si et seulement si la demande
          est ou a été approuvée (une révocation la conserve)

    Attributes:
        id: Identifiant unique
        doctor_id: Médecin demandeur
        patient_id: Patient concerné
        purpose: Motif (obligatoire)
        duration: Durée demandée en jours
        notes: Commentaire libre du médecin
        status: pending | approved | denied | revoked
        request_date: Date de la demande
        expiry_date: Fin de la fenêtre d'accès (None tant que non approuvée)
        limited_scope: Indication d'accès restreint à la spécialité (non appliquée)
        decided_by: Dernier utilisateur ayant statué
        decided_at: Date de la dernière décision

    Example:
        request = AccessRequest(
            doctor_id=5,
            patient_id=9,
            purpose="Follow-up",
            duration=30,
        )
    """

    __tablename__ = "access_requests"
    __table_args__ = (
        Index("ix_access_requests_doctor_patient_status", "doctor_id", "patient_id", "status"),
        {"comment": "Demandes d'accès aux dossiers (historique conservé)"},
    )

    # === Colonnes ===

    id: Mapped[int] = mapped_column(primary_key=True)

    doctor_id: Mapped[int] = mapped_column(
        nullable=False,
        index=True,
        doc="ID du médecin demandeur",
    )

    patient_id: Mapped[int] = mapped_column(
        nullable=False,
        index=True,
        doc="ID du patient concerné",
    )

    purpose: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Motif de la demande",
    )

    duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Durée de la fenêtre d'accès en jours",
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AccessRequestStatus.PENDING.value,
        info={"enum": [e.value for e in AccessRequestStatus]},
    )

    request_date: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
    )

    expiry_date: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime,
        nullable=True,
        doc="Fin de l'accès (décision + durée), NULL tant que non approuvée",
    )

    limited_scope: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        doc="Accès limité à la spécialité (indication d'affichage)",
    )

    # --- Dernière décision ---

    decided_by: Mapped[Optional[int]] = mapped_column(nullable=True)

    decided_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    # === Méthodes ===

    def is_expired_at(self, now: datetime) -> bool:
        """True si une expiration existe et est atteinte à l'instant donné."""
        return self.expiry_date is not None and self.expiry_date <= now

    def grants_access_at(self, now: datetime) -> bool:
        """
        Prédicat de l'accès courant.

        Le statut prime sur la date : une demande révoquée n'accorde
        jamais d'accès, même si expiry_date est dans le futur.
        """
        if self.status != AccessRequestStatus.APPROVED.value:
            return False
        return not self.is_expired_at(now)

    def __repr__(self) -> str:
        return (
            f"<AccessRequest(id={self.id}, doctor={self.doctor_id}, "
            f"patient={self.patient_id}, status={self.status})>"
        )
