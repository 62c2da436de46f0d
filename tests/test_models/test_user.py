"""
Tests unitaires pour les modèles User et MedicalRecord.
"""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.security import verify_password
from app.models import User, UserRole


class TestUser:
    """Tests pour le modèle User."""

    def test_create_user(self, db_session: Session):
        """Test création d'un utilisateur."""
        user = User(
            username="dr.johnson",
            password_hash="x",
            full_name="Dr. Mark Johnson",
            email="dr.johnson@medivault.com",
            role=UserRole.DOCTOR.value,
            specialty="Pediatrics",
        )
        db_session.add(user)
        db_session.flush()

        assert user.id is not None
        assert user.created_at is not None
        assert user.is_doctor is True
        assert user.is_patient is False

    def test_default_role_is_patient(self, db_session: Session):
        """Test rôle par défaut."""
        user = User(username="newbie", password_hash="x", full_name="New", email="new@medivault.com")
        db_session.add(user)
        db_session.flush()

        assert user.role == "patient"

    def test_username_unique(self, db_session: Session, user_patient: User):
        """Test que l'identifiant est unique."""
        duplicate = User(
            username=user_patient.username,
            password_hash="x",
            full_name="Autre",
            email="autre@medivault.com",
        )
        db_session.add(duplicate)

        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_email_unique(self, db_session: Session, user_patient: User):
        """Test que l'email est unique."""
        duplicate = User(
            username="autre",
            password_hash="x",
            full_name="Autre",
            email=user_patient.email,
        )
        db_session.add(duplicate)

        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_has_role(self, user_admin: User, user_doctor: User):
        """Test vérification de rôle (enum ou chaîne)."""
        assert user_admin.has_role(UserRole.ADMIN)
        assert user_doctor.has_role("patient", "doctor")
        assert not user_doctor.has_role(UserRole.ADMIN)

    def test_password_hash_matches_fixture_password(self, user_patient: User):
        assert verify_password("password123", user_patient.password_hash)
        assert not verify_password("wrong-password", user_patient.password_hash)


class TestMedicalRecord:
    """Tests pour le modèle MedicalRecord."""

    def test_patient_authored_record(self, record_patient_authored):
        """Test dossier déposé par le patient (non vérifié, sans auteur)."""
        assert record_patient_authored.is_patient_authored is True
        assert record_patient_authored.verified is False

    def test_doctor_authored_record(self, record_by_doctor):
        assert record_by_doctor.is_patient_authored is False
        assert record_by_doctor.verified is True
