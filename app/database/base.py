"""
Base de données SQLAlchemy - Configuration centrale
Importe tous les modèles pour que les métadonnées soient complètes
"""
from app.database.base_class import Base

# IMPORTANT : tous les modèles doivent être importés ici pour que
# Base.metadata.create_all() crée toutes les tables.
from app.models import (  # noqa: F401
    User,
    MedicalRecord,
    AccessRequest,
    AuditLog,
)

__all__ = ["Base"]
