"""
Contrôle d'accès aux dossiers médicaux.

- AccessGrantEngine : cycle de vie des demandes et calcul de l'accès courant
- AuthorizationGate : contrôle rôle + accès et audit de chaque opération
"""

from app.services.access_control.grant_engine import AccessGrantEngine
from app.services.access_control.authorization_gate import (
    AccessRequestView,
    AuditLogView,
    AuthorizationGate,
    DoctorRecordView,
    UserSummary,
)

__all__ = [
    "AccessGrantEngine",
    "AuthorizationGate",
    "AccessRequestView",
    "AuditLogView",
    "DoctorRecordView",
    "UserSummary",
]
