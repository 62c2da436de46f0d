"""
Mixins réutilisables pour les modèles SQLAlchemy.

Ce module définit des mixins qui ajoutent des fonctionnalités communes
à plusieurs modèles (horodatage de création, versioning).
"""

from datetime import datetime

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.models.types import UTCDateTime, utcnow


class CreatedAtMixin:
    """
    Mixin ajoutant la colonne created_at (auto-remplie à la création).

    Usage:
        class MyModel(CreatedAtMixin, Base):
            __tablename__ = "my_table"
            id: Mapped[int] = mapped_column(primary_key=True)
    """

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        nullable=False,
        doc="Date et heure de création",
    )


class VersionedMixin:
    """
    Mixin ajoutant une colonne de version pour le verrouillage optimiste.

    La version n'est PAS gérée par version_id_col : le store l'incrémente
    explicitement dans un UPDATE conditionnel (compare-and-set) :

        UPDATE access_requests
           SET status = :new, version = version + 1
         WHERE id = :id AND version = :expected

    Zéro ligne modifiée = un autre écrivain est passé entre la lecture
    et l'écriture.
    """

    version: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
        doc="Version pour verrouillage optimiste",
    )
