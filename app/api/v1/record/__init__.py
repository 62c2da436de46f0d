"""
Module Record API.

Expose les routes de consultation et de dépôt des dossiers médicaux.
"""
from app.api.v1.record.routes import router

__all__ = ["router"]
