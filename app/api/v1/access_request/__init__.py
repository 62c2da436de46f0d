"""
Module AccessRequest API.

Expose le cycle de vie des demandes d'accès médecin → patient.
"""
from app.api.v1.access_request.routes import router

__all__ = ["router"]
