"""
Modèle MedicalRecord - Dossier médical d'un patient.

Un dossier appartient à exactement un patient (patient_id, immuable),
quel que soit son auteur. Il n'est jamais supprimé ; seuls verified,
notes et file_url évoluent.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database.base_class import Base
from app.models.mixins import CreatedAtMixin

# Champs modifiables après création
MUTABLE_RECORD_FIELDS = frozenset({"verified", "notes", "file_url"})


class MedicalRecord(CreatedAtMixin, Base):
    """
    Document médical (compte-rendu, résultat d'analyse, ordonnance...).

    Attributes:
        patient_id: Patient propriétaire (contrôle d'accès)
        doctor_id: Médecin auteur, NULL si déposé par le patient
        verified: True uniquement si rédigé ou confirmé par un médecin
        file_url: Référence opaque vers le fichier (stockage hors périmètre)
    """

    __tablename__ = "records"
    __table_args__ = (
        Index("ix_records_patient_date", "patient_id", "record_date"),
        {"comment": "Dossiers médicaux (propriété du patient)"},
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    patient_id: Mapped[int] = mapped_column(nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    record_type: Mapped[str] = mapped_column(String(100), nullable=False)

    doctor_id: Mapped[Optional[int]] = mapped_column(nullable=True, index=True)

    doctor_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    record_date: Mapped[date] = mapped_column(Date, nullable=False)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    file_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def is_patient_authored(self) -> bool:
        """Dossier déposé par le patient lui-même (aucun médecin auteur)."""
        return self.doctor_id is None

    def __repr__(self) -> str:
        return f"<MedicalRecord(id={self.id}, patient={self.patient_id}, verified={self.verified})>"
