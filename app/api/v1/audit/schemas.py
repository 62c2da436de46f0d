"""
Schémas Pydantic pour le module Audit.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.api.v1.user.schemas import UserSummaryResponse


class AuditLogResponse(BaseModel):
    id: int
    user_id: int
    action: str
    details: Optional[str] = None
    ip_address: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogWithUser(AuditLogResponse):
    """Entrée avec le résumé de l'acteur (placeholder si supprimé)."""
    user: UserSummaryResponse
