"""
Routes d'authentification.

Ce module expose les endpoints pour :
- Inscription
- Authentification locale (identifiant/mot de passe)
- Informations utilisateur courant
- Déconnexion

Flux:
    1. POST /auth/login → identifiant/mot de passe, retourne le token
    2. Header "Authorization: Bearer <token>" sur les autres routes
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.auth.schemas import LoginRequest, LoginResponse, RegisterRequest
from app.api.v1.auth.services import AuthService, InvalidCredentialsError
from app.api.v1.dependencies import Audit, ClientIP, Store
from app.api.v1.user.schemas import MessageResponse, UserResponse
from app.core.auth import get_current_user
from app.core.exceptions import ConflictError, ValidationError
from app.models import User

router = APIRouter(
    prefix="/auth",
    tags=["Authentification"],
)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un compte patient ou médecin",
)
def register(data: RegisterRequest, store: Store, audit: Audit):
    try:
        return AuthService(store, audit).register(data)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Connexion identifiant/mot de passe",
    responses={401: {"description": "Identifiants invalides"}},
)
def login(data: LoginRequest, store: Store, audit: Audit, ip_address: ClientIP):
    service = AuthService(store, audit)
    try:
        user = service.authenticate(data.username, data.password, ip_address)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return service.build_login_response(user)


@router.get("/me", response_model=UserResponse, summary="Utilisateur courant")
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/logout", response_model=MessageResponse, summary="Déconnexion")
def logout(
        store: Store,
        audit: Audit,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    """
    Déconnexion.

    Le token reste valide jusqu'à expiration : le client doit le supprimer.
    """
    AuthService(store, audit).logout(current_user, ip_address)
    return MessageResponse(message="Déconnexion réussie")
