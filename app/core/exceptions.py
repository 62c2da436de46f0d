"""
Exceptions métier MediVault.

Taxonomie commune au moteur d'accès, à la passerelle d'autorisation
et au journal d'audit. Les routes traduisent ces exceptions en codes HTTP :

- ValidationError         → 400
- InvalidTransitionError  → 400
- ForbiddenError          → 403
- NotFoundError           → 404
- ConflictError           → 409
- StoreError              → 500 (jamais silencieuse)
"""
from typing import Optional


class MediVaultError(Exception):
    """Classe de base des erreurs métier."""
    pass


class ValidationError(MediVaultError):
    """Données d'entrée invalides (motif manquant, durée non positive, ...)."""
    pass


class NotFoundError(MediVaultError):
    """L'entité référencée n'existe pas."""
    pass


class ForbiddenError(MediVaultError):
    """Utilisateur authentifié mais sans rôle ni accès pour cette opération."""
    pass


class InvalidTransitionError(MediVaultError):
    """Transition de statut non autorisée par la machine à états."""

    def __init__(self, current: str, attempted: str, message: Optional[str] = None):
        self.current = current
        self.attempted = attempted
        super().__init__(
            message or f"Transition invalide : {current} → {attempted}"
        )


class ConflictError(MediVaultError):
    """Modification concurrente ou doublon détecté."""
    pass


class StoreError(MediVaultError):
    """Échec de la couche de persistance."""
    pass
