"""
Service d'audit.
"""

from app.services.audit.audit_logger import AuditLogger

__all__ = ["AuditLogger"]
