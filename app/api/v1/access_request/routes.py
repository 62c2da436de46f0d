"""
Routes FastAPI pour le module AccessRequest.

Endpoints pour :
- GET /access-requests : toutes les demandes (admin)
- GET /access-requests/patient/{id} : demandes concernant un patient
- GET /access-requests/doctor/{id} : demandes d'un médecin
- POST /access-requests : nouvelle demande (médecin, en son nom)
- PATCH /access-requests/{id} : décision (approve / deny / revoke)
- GET /access-requests/check : accès courant d'un médecin sur un patient
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.v1.access_request.schemas import (
    AccessCheckResponse,
    AccessRequestCreate,
    AccessRequestDecision,
    AccessRequestResponse,
    AccessRequestWithDoctor,
    AccessRequestWithParties,
    AccessRequestWithPatient,
)
from app.api.v1.access_request.services import with_doctor, with_parties, with_patient
from app.api.v1.dependencies import ClientIP, Gate
from app.core.auth import get_current_user
from app.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from app.models import User

router = APIRouter(prefix="/access-requests", tags=["Access Requests"])


@router.get("", response_model=List[AccessRequestWithParties])
def list_access_requests(
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """Toutes les demandes (admin uniquement)."""
    try:
        return with_parties(gate.list_all_requests(current_user, ip_address))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/check", response_model=AccessCheckResponse)
def check_access(
        gate: Gate,
        ip_address: ClientIP,
        doctor_id: int = Query(..., gt=0),
        patient_id: int = Query(..., gt=0),
        current_user: User = Depends(get_current_user),
):
    """Accès courant (le médecin, le patient concerné ou un admin)."""
    try:
        has_access, grants = gate.check_access(current_user, doctor_id, patient_id, ip_address)
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return AccessCheckResponse(
        doctor_id=doctor_id,
        patient_id=patient_id,
        has_access=has_access,
        active_grants=[AccessRequestResponse.model_validate(g) for g in grants],
    )


@router.get("/patient/{patient_id}", response_model=List[AccessRequestWithDoctor])
def list_patient_access_requests(
        patient_id: int,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """
    Demandes concernant un patient, avec le résumé du médecin.

    Un médecin ne voit que ses propres demandes.
    """
    try:
        return with_doctor(gate.list_requests_for_patient(current_user, patient_id, ip_address))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/doctor/{doctor_id}", response_model=List[AccessRequestWithPatient])
def list_doctor_access_requests(
        doctor_id: int,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """
    Demandes d'un médecin, avec le résumé du patient et son nombre de dossiers.

    Un patient ne voit que les demandes le concernant.
    """
    try:
        return with_patient(gate.list_requests_for_doctor(current_user, doctor_id, ip_address))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post("", response_model=AccessRequestResponse, status_code=status.HTTP_201_CREATED)
def create_access_request(
        data: AccessRequestCreate,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """Crée une demande en attente (doctor_id doit être l'appelant)."""
    try:
        return gate.request_access(
            current_user,
            doctor_id=data.doctor_id,
            patient_id=data.patient_id,
            purpose=data.purpose,
            duration=data.duration,
            notes=data.notes,
            limited_scope=data.limited_scope,
            ip_address=ip_address,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{request_id}", response_model=AccessRequestResponse)
def decide_access_request(
        request_id: int,
        data: AccessRequestDecision,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """
    Décision sur une demande.

    - patient concerné : approved, denied, revoked
    - médecin demandeur : revoked uniquement
    - admin : toute décision (y compris la levée d'un refus)
    """
    try:
        return gate.decide_request(current_user, request_id, data.status, ip_address)
    except (ValidationError, InvalidTransitionError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
