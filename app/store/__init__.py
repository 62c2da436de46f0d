"""
Store d'entités - Persistance injectée dans le cœur métier.

- EntityStore : protocole commun
- SqlAlchemyEntityStore : PostgreSQL / SQLite
- InMemoryEntityStore : dictionnaires en mémoire (tests)
"""

from app.store.base import EntityStore
from app.store.sqlalchemy_store import SqlAlchemyEntityStore
from app.store.memory_store import InMemoryEntityStore

__all__ = [
    "EntityStore",
    "SqlAlchemyEntityStore",
    "InMemoryEntityStore",
]
