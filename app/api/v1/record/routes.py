"""
Routes FastAPI pour le module Record.

Endpoints pour :
- /records : Création, consultation, mise à jour, export texte
- /records/doctor/{id} : Dossiers accessibles à un médecin
- /patients/{id}/records : Dossiers d'un patient

Toutes les routes passent par la passerelle d'autorisation (rôle + accès
courant) qui audite les consultations croisées.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse

from app.api.v1.dependencies import ClientIP, Gate
from app.api.v1.record.schemas import (
    DoctorRecordResponse,
    RecordCreate,
    RecordResponse,
    RecordUpdate,
)
from app.api.v1.record.services import build_doctor_records, render_record_text
from app.core.auth import get_current_user
from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models import User

router = APIRouter(tags=["Records"])


@router.get("/records/doctor/{doctor_id}", response_model=List[DoctorRecordResponse])
def list_doctor_records(
        doctor_id: int,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """Dossiers propres du médecin puis ceux des patients pour lesquels il a un accès courant."""
    try:
        return build_doctor_records(gate.list_doctor_records(current_user, doctor_id, ip_address))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/records/{record_id}", response_model=RecordResponse)
def get_record(
        record_id: int,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    try:
        return gate.get_record(current_user, record_id, ip_address)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/records/{record_id}/download", response_class=PlainTextResponse)
def download_record(
        record_id: int,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """Export texte du dossier en pièce jointe."""
    try:
        record = gate.download_record(current_user, record_id, ip_address)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    return PlainTextResponse(
        render_record_text(record),
        headers={"Content-Disposition": f'attachment; filename="medical-record-{record_id}.txt"'},
    )


@router.post("/records", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
def create_record(
        data: RecordCreate,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """
    Crée un dossier.

    - patient : pour lui-même uniquement
    - médecin : pour lui-même ou un patient avec accès courant (vérifié d'office)
    - admin : pour tout patient
    """
    try:
        return gate.create_record(
            current_user,
            patient_id=data.patient_id,
            title=data.title,
            record_type=data.record_type,
            record_date=data.record_date,
            doctor_name=data.doctor_name,
            notes=data.notes,
            file_url=data.file_url,
            ip_address=ip_address,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.patch("/records/{record_id}", response_model=RecordResponse)
def update_record(
        record_id: int,
        data: RecordUpdate,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """Met à jour verified / notes / file_url."""
    try:
        return gate.update_record(
            current_user, record_id, data.model_dump(exclude_unset=True), ip_address
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/patients/{patient_id}/records", response_model=List[RecordResponse])
def list_patient_records(
        patient_id: int,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    try:
        return gate.list_patient_records(current_user, patient_id, ip_address)
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
