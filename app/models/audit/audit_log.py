"""
Modèle AuditLog - Journal d'audit des actions sensibles.

IMPORTANT :
- Traçabilité obligatoire pour la conformité
- Logs immuables : toute tentative d'UPDATE/DELETE via l'ORM est rejetée
- L'ordre des timestamps fait foi
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Index, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from app.database.base_class import Base
from app.models.enums import AuditAction
from app.models.types import UTCDateTime, utcnow


class AuditLog(Base):
    """
    Entrée du journal d'audit.

    Attributes:
        id: Identifiant unique
        user_id: Acteur de l'action
        action: Action (vocabulaire fermé AuditAction)
        details: Description libre (ids concernés)
        ip_address: Adresse IP source
        timestamp: Horodatage de l'action

    Example:
        log = AuditLog(
            user_id=5,
            action=AuditAction.RECORD_ACCESSED.value,
            details="Record 12 of patient 9",
            ip_address="192.168.1.100",
        )
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_user_timestamp", "user_id", "timestamp"),
        {"comment": "Journal d'audit (append-only, immuable)"},
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(nullable=False, index=True)

    action: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        info={"enum": [e.value for e in AuditAction]},
    )

    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)

    timestamp: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, user={self.user_id}, action={self.action})>"


class ImmutableAuditLogError(Exception):
    """Tentative de modification ou suppression d'une entrée d'audit."""
    pass


@event.listens_for(AuditLog, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise ImmutableAuditLogError(f"L'entrée d'audit {target.id} est immuable")


@event.listens_for(AuditLog, "before_delete")
def _reject_audit_delete(mapper, connection, target):
    raise ImmutableAuditLogError(f"L'entrée d'audit {target.id} ne peut pas être supprimée")
