"""
Fixtures pytest partagées pour les tests MediVault.

Ce module fournit :
- Une base de données SQLite en mémoire pour les tests (rapide, isolé)
- Des utilisateurs de chaque rôle (admin, médecins, patients)
- Des dossiers et demandes d'accès de test
- Un client FastAPI et des headers JWT par rôle
- Un store en mémoire et une horloge contrôlable pour les tests de services

IMPORTANT :
- DATABASE_URL est forcée sur SQLite AVANT l'import de l'application
- Les accès courants sont dérivés des demandes approuvées non expirées
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import date, datetime, timedelta, timezone
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.core.security import hash_password
from app.core.security.jwt import create_access_token
# Import de la Base et des modèles (enregistrement des tables)
from app.database.base import Base
from app.database.session import get_db
from app.main import app
from app.models import (
    AccessRequest,
    AccessRequestStatus,
    MedicalRecord,
    User,
    UserRole,
)
from app.services.access_control import AccessGrantEngine, AuthorizationGate
from app.services.audit import AuditLogger
from app.store import InMemoryEntityStore

TEST_PASSWORD = "password123"

# Coût bcrypt minimal (BCRYPT_ROUNDS=4) : hash calculé une seule fois
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# =============================================================================
# HORLOGE CONTRÔLABLE
# =============================================================================

class FakeClock:
    """Horloge injectable : l'heure n'avance que sur demande."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    """
    Crée un engine SQLite en mémoire pour les tests.

    Avantages :
    - Rapide (pas d'I/O disque)
    - Isolé (chaque test a sa propre base)
    - Pas besoin de PostgreSQL pour les tests unitaires
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,  # Mettre True pour debug SQL
    )

    # Créer toutes les tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Nettoyer
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Fournit une session de base de données isolée pour chaque test.

    Les commit() du store libèrent des SAVEPOINT : la transaction
    externe est annulée en fin de test.
    """
    connection = engine.connect()

    # Démarrer une transaction externe
    transaction = connection.begin()

    session = Session(bind=connection, join_transaction_mode="create_savepoint")

    try:
        yield session
    finally:
        session.close()
        # Rollback la transaction externe (annule tout)
        transaction.rollback()
        connection.close()


# =============================================================================
# MODEL FIXTURES - Utilisateurs
# =============================================================================

def make_user(username: str, role: UserRole, **kwargs) -> User:
    """Construit un utilisateur de test (mot de passe TEST_PASSWORD)."""
    return User(
        username=username,
        password_hash=TEST_PASSWORD_HASH,
        full_name=kwargs.pop("full_name", username.title()),
        email=kwargs.pop("email", f"{username}@medivault.com"),
        role=role.value,
        **kwargs,
    )


@pytest.fixture
def user_admin(db_session: Session) -> User:
    """Crée l'administrateur de test."""
    user = make_user("admin", UserRole.ADMIN, full_name="System Administrator")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def user_doctor(db_session: Session) -> User:
    """Crée un médecin (cardiologue)."""
    user = make_user("dr.smith", UserRole.DOCTOR, full_name="Dr. John Smith", specialty="Cardiology")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def user_other_doctor(db_session: Session) -> User:
    """Crée un second médecin, sans aucun accès."""
    user = make_user("dr.patel", UserRole.DOCTOR, full_name="Dr. Anita Patel", specialty="Neurology")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def user_patient(db_session: Session) -> User:
    """Crée un patient."""
    user = make_user("patient1", UserRole.PATIENT, full_name="Sarah Wilson")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def user_other_patient(db_session: Session) -> User:
    """Crée un second patient."""
    user = make_user("patient2", UserRole.PATIENT, full_name="Michael Chen")
    db_session.add(user)
    db_session.commit()
    return user


# =============================================================================
# MODEL FIXTURES - Dossiers
# =============================================================================

@pytest.fixture
def record_patient_authored(db_session: Session, user_patient: User) -> MedicalRecord:
    """Dossier déposé par le patient lui-même (aucun médecin auteur)."""
    record = MedicalRecord(
        patient_id=user_patient.id,
        title="Home blood pressure log",
        record_type="Self-report",
        record_date=date(2024, 2, 20),
        notes="Morning readings",
        verified=False,
    )
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def record_by_doctor(db_session: Session, user_patient: User, user_other_doctor: User) -> MedicalRecord:
    """Dossier rédigé par un médecin pour le patient."""
    record = MedicalRecord(
        patient_id=user_patient.id,
        title="Blood Test Results",
        record_type="Laboratory",
        record_date=date(2024, 2, 25),
        doctor_id=user_other_doctor.id,
        doctor_name=user_other_doctor.full_name,
        verified=True,
    )
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def record_other_patient(db_session: Session, user_other_patient: User) -> MedicalRecord:
    record = MedicalRecord(
        patient_id=user_other_patient.id,
        title="Vaccination Record",
        record_type="Immunization",
        record_date=date(2024, 1, 10),
        verified=False,
    )
    db_session.add(record)
    db_session.commit()
    return record


# =============================================================================
# MODEL FIXTURES - Demandes d'accès
# =============================================================================

@pytest.fixture
def access_request_pending(db_session: Session, user_doctor: User, user_patient: User) -> AccessRequest:
    """Demande en attente du médecin sur le patient."""
    request = AccessRequest(
        doctor_id=user_doctor.id,
        patient_id=user_patient.id,
        purpose="Follow-up",
        duration=30,
        status=AccessRequestStatus.PENDING.value,
    )
    db_session.add(request)
    db_session.commit()
    return request


@pytest.fixture
def access_request_approved(db_session: Session, user_doctor: User, user_patient: User, user_admin: User) -> AccessRequest:
    """Accès courant du médecin sur le patient (expire dans 20 jours)."""
    now = datetime.now(timezone.utc)
    request = AccessRequest(
        doctor_id=user_doctor.id,
        patient_id=user_patient.id,
        purpose="Ongoing care",
        duration=30,
        status=AccessRequestStatus.APPROVED.value,
        request_date=now - timedelta(days=10),
        expiry_date=now + timedelta(days=20),
        decided_by=user_admin.id,
        decided_at=now - timedelta(days=10),
    )
    db_session.add(request)
    db_session.commit()
    return request


@pytest.fixture
def access_request_expired(db_session: Session, user_doctor: User, user_patient: User, user_admin: User) -> AccessRequest:
    """Demande approuvée dont la fenêtre est échue."""
    now = datetime.now(timezone.utc)
    request = AccessRequest(
        doctor_id=user_doctor.id,
        patient_id=user_patient.id,
        purpose="Second opinion",
        duration=30,
        status=AccessRequestStatus.APPROVED.value,
        request_date=now - timedelta(days=40),
        expiry_date=now - timedelta(days=10),
        decided_by=user_admin.id,
        decided_at=now - timedelta(days=40),
    )
    db_session.add(request)
    db_session.commit()
    return request


# =============================================================================
# SERVICE FIXTURES - Store en mémoire
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture
def memory_store(clock: FakeClock) -> InMemoryEntityStore:
    return InMemoryEntityStore(clock=clock)


@pytest.fixture
def grant_engine(memory_store: InMemoryEntityStore, clock: FakeClock) -> AccessGrantEngine:
    return AccessGrantEngine(memory_store, clock=clock, default_duration_days=30, max_duration_days=365)


@pytest.fixture
def audit_logger(memory_store: InMemoryEntityStore) -> AuditLogger:
    return AuditLogger(memory_store)


@pytest.fixture
def gate(memory_store, grant_engine, audit_logger) -> AuthorizationGate:
    return AuthorizationGate(memory_store, grant_engine, audit_logger, audit_denials=True)


@pytest.fixture
def people(memory_store: InMemoryEntityStore) -> dict:
    """Admin (1), médecins 5 et 6, patients 9 et 10 dans le store en mémoire."""
    return {
        "admin": memory_store.create_user(make_user("admin", UserRole.ADMIN, id=1)),
        "doctor": memory_store.create_user(make_user("dr.smith", UserRole.DOCTOR, id=5, specialty="Cardiology")),
        "other_doctor": memory_store.create_user(make_user("dr.patel", UserRole.DOCTOR, id=6)),
        "patient": memory_store.create_user(make_user("patient1", UserRole.PATIENT, id=9)),
        "other_patient": memory_store.create_user(make_user("patient2", UserRole.PATIENT, id=10)),
    }


# =============================================================================
# API CLIENT FIXTURES
# =============================================================================

@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Client de test FastAPI branché sur la session de test.

    L'authentification n'est pas mockée : chaque requête porte le
    header JWT du rôle voulu (voir les fixtures *_headers).
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def token_headers(user: User) -> dict:
    """Headers Authorization pour un utilisateur."""
    token = create_access_token(data={
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(user_admin: User) -> dict:
    return token_headers(user_admin)


@pytest.fixture
def doctor_headers(user_doctor: User) -> dict:
    return token_headers(user_doctor)


@pytest.fixture
def other_doctor_headers(user_other_doctor: User) -> dict:
    return token_headers(user_other_doctor)


@pytest.fixture
def patient_headers(user_patient: User) -> dict:
    return token_headers(user_patient)


@pytest.fixture
def other_patient_headers(user_other_patient: User) -> dict:
    return token_headers(user_other_patient)
