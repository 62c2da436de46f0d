"""
Dépendances d'authentification.

Flow:
    1. get_current_user() extrait le JWT du header Authorization
    2. Vérifie signature, expiration, émetteur et type du token
    3. Charge l'utilisateur via le store

Usage:
    @router.get("/records/{record_id}")
    async def get_record(
        record_id: int,
        current_user: User = Depends(get_current_user),
    ):
        ...
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.security.jwt import verify_token
from app.database.session import get_db
from app.models import User, UserRole
from app.store.sqlalchemy_store import SqlAlchemyEntityStore

logger = logging.getLogger(__name__)

# Security scheme pour le token Bearer
bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# AUTHENTIFICATION UTILISATEUR
# =============================================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Dépendance pour obtenir l'utilisateur courant depuis le JWT.

    Raises:
        HTTPException 401: Token manquant, invalide ou utilisateur inconnu

    Returns:
        User: L'utilisateur authentifié
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token d'authentification requis",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = verify_token(credentials.credentials, token_type="access")

        # Le JWT stocke le sujet sous forme de chaîne
        try:
            user_id = int(payload.get("sub"))
        except (ValueError, TypeError):
            user_id = None

        if user_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token invalide: user_id manquant",
                headers={"WWW-Authenticate": "Bearer"},
            )

    except JWTError as e:
        logger.info(f"Token rejeté: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token invalide: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = SqlAlchemyEntityStore(db).get_user(user_id)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Utilisateur non trouvé",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


# =============================================================================
# VÉRIFICATION DES RÔLES
# =============================================================================

def require_role(*roles: UserRole):
    """
    Factory de dépendance pour vérifier le rôle de l'utilisateur.

    Usage:
        @router.get("/patients")
        async def list_patients(
            current_user: User = Depends(require_role(UserRole.DOCTOR, UserRole.ADMIN))
        ):
            ...
    """
    async def role_checker(
        current_user: User = Depends(get_current_user),
    ) -> User:
        if not current_user.has_role(*roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Rôle requis: {', '.join(UserRole(r).value for r in roles)}",
            )
        return current_user

    return role_checker
