"""
Schémas Pydantic pour le module AccessRequest.

Les valeurs de statut (pending, approved, denied, revoked) font partie
du contrat externe.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.api.v1.user.schemas import UserSummaryResponse
from app.core.config import settings
from app.models import AccessRequestStatus


# =============================================================================
# REQUÊTES
# =============================================================================

class AccessRequestCreate(BaseModel):
    """Demande d'accès d'un médecin (doctor_id doit être l'appelant)."""
    doctor_id: int = Field(..., gt=0)
    patient_id: int = Field(..., gt=0)
    purpose: str = Field(..., min_length=1, max_length=2000, description="Motif de la demande")
    duration: int = Field(
        ...,
        gt=0,
        le=settings.MAX_ACCESS_DURATION_DAYS,
        description="Durée en jours (30, 60, 90, 180 proposés côté client)",
    )
    notes: Optional[str] = Field(None, max_length=2000)
    limited_scope: bool = Field(False, description="Accès limité à la spécialité (indicatif)")

    @field_validator("purpose")
    @classmethod
    def validate_purpose(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le motif est obligatoire")
        return v.strip()


class AccessRequestDecision(BaseModel):
    """Décision sur une demande."""
    status: AccessRequestStatus

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: AccessRequestStatus) -> AccessRequestStatus:
        if v == AccessRequestStatus.PENDING:
            raise ValueError("Une décision ne peut pas remettre la demande en attente")
        return v


# =============================================================================
# RÉPONSES
# =============================================================================

class AccessRequestResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    purpose: str
    duration: int
    notes: Optional[str] = None
    status: str
    request_date: datetime
    expiry_date: Optional[datetime] = None
    limited_scope: bool
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    version: int

    model_config = ConfigDict(from_attributes=True)


class AccessRequestWithDoctor(AccessRequestResponse):
    doctor: UserSummaryResponse


class AccessRequestWithPatient(AccessRequestResponse):
    patient: UserSummaryResponse
    record_count: int = 0


class AccessRequestWithParties(AccessRequestResponse):
    """Vue admin : médecin et patient embarqués."""
    doctor: UserSummaryResponse
    patient: UserSummaryResponse


class AccessCheckResponse(BaseModel):
    doctor_id: int
    patient_id: int
    has_access: bool
    active_grants: List[AccessRequestResponse] = Field(default_factory=list)
