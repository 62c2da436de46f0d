"""
Routes FastAPI pour le module Audit.

Endpoints pour :
- GET /audit-logs : journal complet, plus récent en premier (admin)
- GET /audit-logs/user/{id} : actions d'un utilisateur (lui-même ou admin)

Lecture seule : le journal est alimenté par les autres modules.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.audit.schemas import AuditLogResponse, AuditLogWithUser
from app.api.v1.dependencies import ClientIP, Gate
from app.api.v1.user.schemas import UserSummaryResponse
from app.core.auth import get_current_user
from app.core.exceptions import ForbiddenError
from app.models import User

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=List[AuditLogWithUser])
def list_audit_logs(
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    try:
        views = gate.list_audit_logs(current_user, ip_address)
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return [
        AuditLogWithUser(
            **AuditLogResponse.model_validate(view.log).model_dump(),
            user=UserSummaryResponse.model_validate(view.user),
        )
        for view in views
    ]


@router.get("/user/{user_id}", response_model=List[AuditLogResponse])
def list_user_audit_logs(
        user_id: int,
        gate: Gate,
        ip_address: ClientIP,
        current_user: User = Depends(get_current_user),
):
    try:
        return gate.list_user_audit_logs(current_user, user_id, ip_address)
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
