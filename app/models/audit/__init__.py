"""
Audit models - Journal d'audit immuable.
"""

from app.models.audit.audit_log import AuditLog, ImmutableAuditLogError

__all__ = [
    "AuditLog",
    "ImmutableAuditLogError",
]
