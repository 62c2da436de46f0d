"""
Schémas Pydantic pour le module Record.
"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RecordCreate(BaseModel):
    """
    Création d'un dossier.

    L'auteur (doctor_id) et verified sont déduits de l'appelant :
    un dépôt médecin est vérifié d'office.
    """
    patient_id: int = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=255)
    record_type: str = Field(..., min_length=1, max_length=100, description="Type (Lab Results, Imaging...)")
    record_date: date
    doctor_name: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=500, description="Référence opaque")


class RecordUpdate(BaseModel):
    """Seuls verified, notes et file_url sont modifiables."""
    verified: Optional[bool] = None
    notes: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(extra="forbid")


class RecordResponse(BaseModel):
    id: int
    patient_id: int
    title: str
    record_type: str
    doctor_id: Optional[int] = None
    doctor_name: Optional[str] = None
    record_date: date
    notes: Optional[str] = None
    file_url: Optional[str] = None
    verified: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DoctorRecordResponse(RecordResponse):
    """Dossier visible par un médecin, avec l'état de son accès."""
    access_granted: bool = False
    access_expiry_date: Optional[datetime] = None
