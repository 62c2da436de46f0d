"""
Tests API pour le module User.

Ce module teste les endpoints :
- GET /api/v1/doctors, /api/v1/patients : Annuaires
- GET /api/v1/users, /api/v1/users/{id} : Liste (admin) et profil
- PATCH /api/v1/users/{id} : Mise à jour du profil
- POST /api/v1/users/{id}/change-password : Mot de passe
- GET/PATCH /api/v1/users/{id}/notifications : Préférences
"""

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.security import verify_password
from app.models import AuditAction
from app.store import SqlAlchemyEntityStore


BASE = "/api/v1"


class TestDirectories:

    def test_any_user_lists_doctors(self, client: TestClient, patient_headers, user_doctor, user_other_doctor):
        response = client.get(f"{BASE}/doctors", headers=patient_headers)

        assert response.status_code == status.HTTP_200_OK
        assert {u["username"] for u in response.json()} == {"dr.smith", "dr.patel"}

    def test_patient_cannot_list_patients(self, client: TestClient, patient_headers):
        response = client.get(f"{BASE}/patients", headers=patient_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_doctor_lists_patients(self, client: TestClient, doctor_headers, user_patient, user_other_patient):
        response = client.get(f"{BASE}/patients", headers=doctor_headers)

        assert response.status_code == status.HTTP_200_OK
        assert all(u["role"] == "patient" for u in response.json())
        assert len(response.json()) == 2

    def test_list_users_admin_only(self, client: TestClient, admin_headers, doctor_headers, user_patient):
        assert client.get(f"{BASE}/users", headers=admin_headers).status_code == status.HTTP_200_OK
        assert client.get(f"{BASE}/users", headers=doctor_headers).status_code == status.HTTP_403_FORBIDDEN


class TestGetUser:

    def test_get_self(self, client: TestClient, patient_headers, user_patient):
        response = client.get(f"{BASE}/users/{user_patient.id}", headers=patient_headers)

        assert response.status_code == status.HTTP_200_OK
        assert "password_hash" not in response.json()

    def test_doctor_without_grant_cannot_view_patient(self, client: TestClient, doctor_headers, user_patient):
        response = client.get(f"{BASE}/users/{user_patient.id}", headers=doctor_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_doctor_with_grant_views_patient(self, client: TestClient, doctor_headers, user_patient, access_request_approved):
        response = client.get(f"{BASE}/users/{user_patient.id}", headers=doctor_headers)

        assert response.status_code == status.HTTP_200_OK

    def test_admin_view_of_patient_is_audited(
            self, client: TestClient, db_session: Session, admin_headers, user_admin, user_patient,
    ):
        response = client.get(f"{BASE}/users/{user_patient.id}", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        logs = SqlAlchemyEntityStore(db_session).list_audit_logs_by_user(user_admin.id)
        assert [l.action for l in logs] == [AuditAction.RECORD_ACCESSED.value]
        assert f"patient {user_patient.id}" in logs[0].details

    def test_unknown_user(self, client: TestClient, admin_headers):
        assert client.get(f"{BASE}/users/99999", headers=admin_headers).status_code == status.HTTP_404_NOT_FOUND


class TestUpdateProfile:

    def test_update_own_profile(self, client: TestClient, db_session: Session, patient_headers, user_patient):
        response = client.patch(
            f"{BASE}/users/{user_patient.id}",
            json={"full_name": "Sarah W.", "phone": "555-0100", "bio": "Runner"},
            headers=patient_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["full_name"] == "Sarah W."

        user = SqlAlchemyEntityStore(db_session).get_user(user_patient.id)
        assert user.user_settings["profile"]["bio"] == "Runner"
        logs = SqlAlchemyEntityStore(db_session).list_audit_logs_by_user(user_patient.id)
        assert [l.action for l in logs] == [AuditAction.PROFILE_UPDATED.value]

    def test_role_is_not_updatable(self, client: TestClient, patient_headers, user_patient):
        response = client.patch(f"{BASE}/users/{user_patient.id}", json={"role": "admin"}, headers=patient_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_cannot_update_other_user(self, client: TestClient, patient_headers, user_other_patient):
        response = client.patch(f"{BASE}/users/{user_other_patient.id}", json={"full_name": "X"}, headers=patient_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_email_conflict(self, client: TestClient, patient_headers, user_patient, user_doctor):
        response = client.patch(
            f"{BASE}/users/{user_patient.id}",
            json={"email": user_doctor.email},
            headers=patient_headers,
        )

        assert response.status_code == status.HTTP_409_CONFLICT


class TestChangePassword:

    def test_change_own_password(self, client: TestClient, db_session: Session, patient_headers, user_patient):
        response = client.post(
            f"{BASE}/users/{user_patient.id}/change-password",
            json={"current_password": "password123", "new_password": "new-password-456"},
            headers=patient_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        user = SqlAlchemyEntityStore(db_session).get_user(user_patient.id)
        assert verify_password("new-password-456", user.password_hash)
        assert user.user_settings["security"]["last_password_change"] is not None

    def test_wrong_current_password(self, client: TestClient, patient_headers, user_patient):
        response = client.post(
            f"{BASE}/users/{user_patient.id}/change-password",
            json={"current_password": "wrong-password", "new_password": "new-password-456"},
            headers=patient_headers,
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_same_password_rejected(self, client: TestClient, patient_headers, user_patient):
        response = client.post(
            f"{BASE}/users/{user_patient.id}/change-password",
            json={"current_password": "password123", "new_password": "password123"},
            headers=patient_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_admin_resets_other_password(self, client: TestClient, admin_headers, user_patient):
        response = client.post(
            f"{BASE}/users/{user_patient.id}/change-password",
            json={"current_password": "unknown", "new_password": "reset-password-789"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK


class TestNotifications:

    def test_defaults_when_settings_missing(self, client: TestClient, patient_headers, user_patient):
        response = client.get(f"{BASE}/users/{user_patient.id}/notifications", headers=patient_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["email_notifications"] is True
        assert data["communication_preference"] == "email"
        assert data["quiet_hours"]["enabled"] is False

    def test_partial_update(self, client: TestClient, db_session: Session, patient_headers, user_patient):
        response = client.patch(
            f"{BASE}/users/{user_patient.id}/notifications",
            json={"sms_notifications": True, "quiet_hours": {"enabled": True, "start": "22:00", "end": "07:00"}},
            headers=patient_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["sms_notifications"] is True
        assert data["email_notifications"] is True
        assert data["quiet_hours"]["start"] == "22:00"

        logs = SqlAlchemyEntityStore(db_session).list_audit_logs_by_user(user_patient.id)
        assert [l.action for l in logs] == [AuditAction.NOTIFICATION_PREFERENCES_UPDATED.value]

    def test_invalid_preference(self, client: TestClient, patient_headers, user_patient):
        response = client.patch(
            f"{BASE}/users/{user_patient.id}/notifications",
            json={"communication_preference": "pigeon"},
            headers=patient_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_other_user_forbidden(self, client: TestClient, doctor_headers, user_patient):
        response = client.get(f"{BASE}/users/{user_patient.id}/notifications", headers=doctor_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
