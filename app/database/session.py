"""
Session SQLAlchemy MediVault.

- engine : PostgreSQL (pool) ou SQLite (démo locale, tests)
- SessionLocal : factory de sessions
- get_db : dépendance FastAPI, une session par requête
- db_session : équivalent pour les scripts (seed, init)
"""
import logging
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str = settings.DATABASE_URL):
    """Crée l'engine adapté au dialecte de l'URL."""
    if database_url.startswith("sqlite"):
        # Une seule connexion partagée : indispensable pour sqlite:// en mémoire
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        database_url,
        echo=settings.ENVIRONMENT == "development",
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_recycle=1800,
        pool_pre_ping=True,
        connect_args={
            "application_name": "medivault",
            "options": "-c timezone=UTC",
        },
    )


engine = build_engine()

# expire_on_commit=False : les entités restent lisibles après le commit du store
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """
    Dépendance FastAPI : une session par requête HTTP.

    Le store commite chaque écriture ; tout reliquat est annulé en cas d'erreur.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


class db_session:
    """
    Session hors FastAPI.

    Usage:
        with db_session() as db:
            db.add(user)
    """

    def __init__(self, commit_on_exit: bool = True):
        self.db: Optional[Session] = None
        self.commit_on_exit = commit_on_exit

    def __enter__(self) -> Session:
        self.db = SessionLocal()
        return self.db

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None and self.commit_on_exit:
                self.db.commit()
            else:
                self.db.rollback()
        finally:
            self.db.close()
        return False


def check_database_connection() -> bool:
    """Vérifie que la base répond (démarrage, scripts d'initialisation)."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"❌ Erreur de connexion à la base de données : {e}")
        return False
