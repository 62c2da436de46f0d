"""
Types SQLAlchemy personnalisés pour MediVault.

Ce module définit des types compatibles SQLite (tests) et PostgreSQL (production).
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator


# ============================================================================
# JSONBCompatible - Type JSON compatible multi-dialecte
# ============================================================================
#
# - Sur PostgreSQL : utilise JSONB
# - Sur SQLite/autres : utilise JSON standard
#
# ============================================================================

JSONBCompatible = JSON().with_variant(JSONB(astext_type=Text()), 'postgresql')

# Pour les colonnes qui stockent des paramètres utilisateur
JSONSettings = JSONBCompatible


# ============================================================================
# UTCDateTime - Horodatage toujours en UTC, toujours "aware"
# ============================================================================
#
# SQLite ne conserve pas le fuseau horaire : sans ce type, un datetime relu
# serait "naive" et la comparaison avec datetime.now(timezone.utc) lèverait
# une TypeError. On stocke donc en UTC sans tzinfo et on réattache UTC à la
# lecture. Les comparaisons SQL (expiry_date > :now) passent par le même
# bind_param et restent cohérentes.
#
# ============================================================================

class UTCDateTime(TypeDecorator):
    """DateTime stocké en UTC et relu avec tzinfo=UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """Horloge par défaut de l'application (UTC, aware)."""
    return datetime.now(timezone.utc)
