"""
MediVault Models - Export centralisé de tous les modèles SQLAlchemy.

Ce fichier permet d'importer tous les modèles depuis un seul endroit :
    from app.models import User, MedicalRecord, AccessRequest, AuditLog

Structure des sous-dossiers :
    user/       - Utilisateurs (patients, médecins, administrateurs)
    record/     - Dossiers médicaux
    access/     - Demandes d'accès (AccessRequest)
    audit/      - Journal d'audit (AuditLog)
"""

# === Enums ===
from app.models.enums import (
    UserRole,
    AccessRequestStatus,
    AuditAction,
    DECISION_STATUSES,
    DECISION_AUDIT_ACTIONS,
)

# === Mixins ===
from app.models.mixins import (
    CreatedAtMixin,
    VersionedMixin,
)

# === Modèles ===
from app.models.user.user import User, UNKNOWN_USER_NAME
from app.models.record.medical_record import MedicalRecord, MUTABLE_RECORD_FIELDS
from app.models.access.access_request import AccessRequest
from app.models.audit.audit_log import AuditLog, ImmutableAuditLogError


__all__ = [
    # Enums
    "UserRole",
    "AccessRequestStatus",
    "AuditAction",
    "DECISION_STATUSES",
    "DECISION_AUDIT_ACTIONS",
    # Mixins
    "CreatedAtMixin",
    "VersionedMixin",
    # Modèles
    "User",
    "UNKNOWN_USER_NAME",
    "MedicalRecord",
    "MUTABLE_RECORD_FIELDS",
    "AccessRequest",
    "AuditLog",
    "ImmutableAuditLogError",
]
