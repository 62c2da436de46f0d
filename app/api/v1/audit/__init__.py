"""
Module Audit API.
"""
from app.api.v1.audit.routes import router

__all__ = ["router"]
