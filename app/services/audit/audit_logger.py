"""
Journal d'audit - Ajout synchrone d'entrées immuables.

Aucune logique de filtrage ici : le logger écrit, il ne lit pas.
Une écriture en échec lève StoreError et fait échouer l'action
déclenchante (une décision d'accès non auditée est une non-conformité).
"""

import logging
from typing import Optional, Union

from app.core.exceptions import ValidationError
from app.models import AuditAction, AuditLog
from app.store.base import EntityStore

logger = logging.getLogger(__name__)


class AuditLogger:
    """Point d'entrée unique pour l'écriture dans audit_logs."""

    def __init__(self, store: EntityStore):
        self.store = store

    def log(
            self,
            user_id: int,
            action: Union[AuditAction, str],
            details: Optional[str] = None,
            ip_address: Optional[str] = None,
    ) -> AuditLog:
        """
        Ajoute une entrée au journal.

        Args:
            user_id: Acteur de l'action
            action: Tag du vocabulaire AuditAction
            details: Description (ids concernés, pas de donnée médicale)
            ip_address: IP du client

        Returns:
            L'entrée persistée (id et timestamp renseignés)

        Raises:
            ValidationError: Action hors vocabulaire
            StoreError: Échec d'écriture (propagé tel quel)
        """
        try:
            action = AuditAction(action)
        except ValueError as e:
            raise ValidationError(f"Action d'audit inconnue : {action}") from e

        entry = self.store.append_audit_log(
            AuditLog(
                user_id=user_id,
                action=action.value,
                details=details,
                ip_address=ip_address,
            )
        )
        logger.info(f"📝 Audit [{action.value}] user={user_id} {details or ''}".rstrip())
        return entry
