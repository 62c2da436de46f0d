# app/api/v1/dependencies.py
"""
Dépendances générales de l'API v1.

Assemble le cœur métier pour chaque requête :
    Session → SqlAlchemyEntityStore → AuditLogger / AccessGrantEngine → AuthorizationGate

Les tests peuvent remplacer n'importe quel maillon via app.dependency_overrides
(typiquement get_db, ou get_store pour un InMemoryEntityStore).
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.database.session import get_db
from app.services.access_control import AccessGrantEngine, AuthorizationGate
from app.services.audit import AuditLogger
from app.store import EntityStore, SqlAlchemyEntityStore


def get_store(db: Session = Depends(get_db)) -> EntityStore:
    """Store lié à la session de la requête."""
    return SqlAlchemyEntityStore(db)


def get_audit_logger(store: EntityStore = Depends(get_store)) -> AuditLogger:
    return AuditLogger(store)


def get_grant_engine(store: EntityStore = Depends(get_store)) -> AccessGrantEngine:
    return AccessGrantEngine(store)


def get_authorization_gate(
        store: EntityStore = Depends(get_store),
        engine: AccessGrantEngine = Depends(get_grant_engine),
        audit_logger: AuditLogger = Depends(get_audit_logger),
) -> AuthorizationGate:
    return AuthorizationGate(
        store,
        engine,
        audit_logger,
        audit_denials=settings.AUDIT_DENIED_ATTEMPTS,
    )


def get_client_ip(request: Request) -> Optional[str]:
    """IP du client (premier hop de X-Forwarded-For si présent)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# =============================================================================
# TYPE ALIASES
# =============================================================================

Store = Annotated[EntityStore, Depends(get_store)]
Gate = Annotated[AuthorizationGate, Depends(get_authorization_gate)]
Audit = Annotated[AuditLogger, Depends(get_audit_logger)]
ClientIP = Annotated[Optional[str], Depends(get_client_ip)]
