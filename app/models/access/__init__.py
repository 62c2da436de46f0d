"""
Access models - Demandes d'accès aux dossiers.

- AccessRequest : Demande d'un médecin, source unique de l'accès courant
"""

from app.models.access.access_request import AccessRequest

__all__ = [
    "AccessRequest",
]
