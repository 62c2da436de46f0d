"""
Routes FastAPI pour le module User.

Endpoints pour :
- /users : Liste (admin), profil, mise à jour, mot de passe
- /users/{id}/notifications : Préférences de notification
- /doctors : Annuaire des médecins
- /patients : Annuaire des patients (médecins et admins)
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.dependencies import Audit, ClientIP, Gate, Store
from app.api.v1.user.schemas import (
    MessageResponse,
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    PasswordChangeRequest,
    UserResponse,
    UserUpdate,
)
from app.api.v1.user.services import InvalidPasswordError, UserService
from app.core.auth import get_current_user, require_role
from app.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.models import User, UserRole

# =============================================================================
# ROUTERS
# =============================================================================

router = APIRouter(tags=["Users"])
users_router = APIRouter(prefix="/users", tags=["Users"])


# =============================================================================
# ANNUAIRES
# =============================================================================

@router.get("/doctors", response_model=List[UserResponse])
def list_doctors(
        store: Store,
        gate: Gate,
        audit: Audit,
        current_user: User = Depends(get_current_user),
):
    """Liste les médecins (tout utilisateur authentifié)."""
    return UserService(store, gate, audit).list_users(UserRole.DOCTOR)


@router.get("/patients", response_model=List[UserResponse])
def list_patients(
        store: Store,
        gate: Gate,
        audit: Audit,
        current_user: User = Depends(require_role(UserRole.DOCTOR, UserRole.ADMIN)),
):
    """Liste les patients (médecins et admins)."""
    return UserService(store, gate, audit).list_users(UserRole.PATIENT)


# =============================================================================
# USER ENDPOINTS
# =============================================================================

@users_router.get("", response_model=List[UserResponse])
def list_users(
        store: Store,
        gate: Gate,
        audit: Audit,
        current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Liste tous les utilisateurs (admin uniquement)."""
    return UserService(store, gate, audit).list_users()


@users_router.get("/{user_id}", response_model=UserResponse)
def get_user(
        user_id: int,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """
    Récupère un utilisateur.

    Autorisé pour : soi-même, tout profil médecin, un patient suivi
    (médecin avec accès courant), ou un admin.
    """
    try:
        return gate.get_user(current_user, user_id, ip_address)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@users_router.patch("/{user_id}", response_model=UserResponse)
def update_user(
        user_id: int,
        data: UserUpdate,
        store: Store,
        gate: Gate,
        audit: Audit,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """Met à jour un profil (soi-même ou admin). Le rôle n'est pas modifiable."""
    try:
        service = UserService(store, gate, audit)
        return service.update_profile(current_user, user_id, data, ip_address)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@users_router.post("/{user_id}/change-password", response_model=MessageResponse)
def change_password(
        user_id: int,
        data: PasswordChangeRequest,
        store: Store,
        gate: Gate,
        audit: Audit,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """Change le mot de passe (mot de passe actuel requis pour son propre compte)."""
    try:
        service = UserService(store, gate, audit)
        service.change_password(
            current_user, user_id, data.current_password, data.new_password, ip_address
        )
        return MessageResponse(message="Mot de passe modifié")
    except InvalidPasswordError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


# =============================================================================
# NOTIFICATION PREFERENCES
# =============================================================================

@users_router.get("/{user_id}/notifications", response_model=NotificationPreferencesResponse)
def get_notification_preferences(
        user_id: int,
        store: Store,
        gate: Gate,
        audit: Audit,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """Préférences de notification (soi-même ou admin)."""
    try:
        service = UserService(store, gate, audit)
        prefs = service.get_notifications(current_user, user_id, ip_address)
        return NotificationPreferencesResponse.model_validate(prefs.model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@users_router.patch("/{user_id}/notifications", response_model=NotificationPreferencesResponse)
def update_notification_preferences(
        user_id: int,
        data: NotificationPreferencesUpdate,
        store: Store,
        gate: Gate,
        audit: Audit,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """Met à jour partiellement les préférences de notification."""
    try:
        service = UserService(store, gate, audit)
        prefs = service.update_notifications(current_user, user_id, data, ip_address)
        return NotificationPreferencesResponse.model_validate(prefs.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


# =============================================================================
# INCLUDE SUB-ROUTERS
# =============================================================================

router.include_router(users_router)
