"""
Tests API pour le module Record.

Ce module teste les endpoints :
- GET /api/v1/records/{id} : Consultation (rôle + accès courant)
- GET /api/v1/records/{id}/download : Export texte
- POST /api/v1/records : Dépôt
- PATCH /api/v1/records/{id} : Mise à jour (verified, notes, file_url)
- GET /api/v1/patients/{id}/records : Dossiers d'un patient
- GET /api/v1/records/doctor/{id} : Dossiers accessibles à un médecin
"""

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models import AuditAction
from app.store import SqlAlchemyEntityStore


BASE = "/api/v1"


def audit_actions(db_session: Session, user_id: int) -> list:
    return [log.action for log in SqlAlchemyEntityStore(db_session).list_audit_logs_by_user(user_id)]


class TestGetRecord:
    """Consultation d'un dossier."""

    def test_patient_reads_own_record(self, client: TestClient, patient_headers, record_patient_authored):
        response = client.get(f"{BASE}/records/{record_patient_authored.id}", headers=patient_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["title"] == "Home blood pressure log"
        assert data["doctor_id"] is None
        assert data["verified"] is False

    def test_doctor_without_grant_forbidden(
            self, client: TestClient, db_session: Session, doctor_headers, user_doctor, record_patient_authored,
    ):
        response = client.get(f"{BASE}/records/{record_patient_authored.id}", headers=doctor_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert set(response.json()) == {"detail"}
        assert audit_actions(db_session, user_doctor.id) == [AuditAction.ACCESS_ATTEMPT_DENIED.value]

    def test_doctor_with_grant_reads_and_is_audited(
            self, client: TestClient, db_session: Session, doctor_headers, user_doctor,
            record_patient_authored, access_request_approved,
    ):
        response = client.get(
            f"{BASE}/records/{record_patient_authored.id}",
            headers={**doctor_headers, "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )

        assert response.status_code == status.HTTP_200_OK
        logs = SqlAlchemyEntityStore(db_session).list_audit_logs_by_user(user_doctor.id)
        assert [l.action for l in logs] == [AuditAction.RECORD_ACCESSED.value]
        assert logs[0].ip_address == "203.0.113.7"

    def test_expired_grant_is_not_access(
            self, client: TestClient, doctor_headers, record_patient_authored, access_request_expired,
    ):
        response = client.get(f"{BASE}/records/{record_patient_authored.id}", headers=doctor_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_other_patient_forbidden(self, client: TestClient, other_patient_headers, record_patient_authored):
        response = client.get(f"{BASE}/records/{record_patient_authored.id}", headers=other_patient_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_reads_any_record(self, client: TestClient, admin_headers, record_patient_authored):
        response = client.get(f"{BASE}/records/{record_patient_authored.id}", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK

    def test_unknown_record(self, client: TestClient, admin_headers):
        response = client.get(f"{BASE}/records/99999", headers=admin_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert set(response.json()) == {"detail"}

    def test_non_numeric_id(self, client: TestClient, admin_headers):
        response = client.get(f"{BASE}/records/abc", headers=admin_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "detail" in response.json()

    def test_unauthenticated(self, client: TestClient, record_patient_authored):
        response = client.get(f"{BASE}/records/{record_patient_authored.id}")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestDownloadRecord:

    def test_download_text_export(self, client: TestClient, patient_headers, record_by_doctor):
        response = client.get(f"{BASE}/records/{record_by_doctor.id}/download", headers=patient_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/plain")
        assert f'filename="medical-record-{record_by_doctor.id}.txt"' in response.headers["content-disposition"]
        assert "Medical Record: Blood Test Results" in response.text
        assert "Verified: Yes" in response.text

    def test_download_forbidden_without_grant(self, client: TestClient, other_doctor_headers, record_patient_authored):
        response = client.get(f"{BASE}/records/{record_patient_authored.id}/download", headers=other_doctor_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestCreateRecord:

    def _payload(self, patient_id: int) -> dict:
        return {
            "patient_id": patient_id,
            "title": "ECG",
            "record_type": "Cardiology",
            "record_date": "2024-03-01",
            "notes": "Sinus rhythm",
        }

    def test_patient_uploads_own_record(self, client: TestClient, patient_headers, user_patient):
        response = client.post(f"{BASE}/records", json=self._payload(user_patient.id), headers=patient_headers)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["verified"] is False
        assert data["doctor_id"] is None

    def test_patient_cannot_upload_for_other(self, client: TestClient, patient_headers, user_other_patient):
        response = client.post(f"{BASE}/records", json=self._payload(user_other_patient.id), headers=patient_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_doctor_with_grant_uploads_verified(
            self, client: TestClient, db_session: Session, doctor_headers, user_doctor, user_patient,
            access_request_approved,
    ):
        response = client.post(f"{BASE}/records", json=self._payload(user_patient.id), headers=doctor_headers)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["verified"] is True
        assert data["doctor_id"] == user_doctor.id
        assert data["doctor_name"] == "Dr. John Smith"
        assert audit_actions(db_session, user_doctor.id) == [AuditAction.RECORD_CREATED.value]

    def test_unknown_patient(self, client: TestClient, admin_headers):
        response = client.post(f"{BASE}/records", json=self._payload(99999), headers=admin_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_missing_title(self, client: TestClient, patient_headers, user_patient):
        payload = self._payload(user_patient.id)
        del payload["title"]

        response = client.post(f"{BASE}/records", json=payload, headers=patient_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestUpdateRecord:

    def test_patient_updates_notes(self, client: TestClient, patient_headers, record_patient_authored):
        response = client.patch(
            f"{BASE}/records/{record_patient_authored.id}",
            json={"notes": "Evening readings too"},
            headers=patient_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["notes"] == "Evening readings too"

    def test_patient_cannot_verify(self, client: TestClient, patient_headers, record_patient_authored):
        response = client.patch(
            f"{BASE}/records/{record_patient_authored.id}",
            json={"verified": True},
            headers=patient_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_doctor_with_grant_verifies(self, client: TestClient, doctor_headers, record_patient_authored, access_request_approved):
        response = client.patch(
            f"{BASE}/records/{record_patient_authored.id}",
            json={"verified": True},
            headers=doctor_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["verified"] is True

    def test_owner_cannot_be_changed(self, client: TestClient, admin_headers, record_patient_authored, user_other_patient):
        response = client.patch(
            f"{BASE}/records/{record_patient_authored.id}",
            json={"patient_id": user_other_patient.id},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_null_verified_rejected(self, client: TestClient, admin_headers, record_patient_authored):
        response = client.patch(
            f"{BASE}/records/{record_patient_authored.id}",
            json={"verified": None},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestRecordLists:

    def test_patient_lists_own_records(self, client: TestClient, patient_headers, user_patient, record_patient_authored, record_by_doctor):
        response = client.get(f"{BASE}/patients/{user_patient.id}/records", headers=patient_headers)

        assert response.status_code == status.HTTP_200_OK
        assert [r["id"] for r in response.json()] == [record_by_doctor.id, record_patient_authored.id]

    def test_doctor_lists_without_grant_forbidden(self, client: TestClient, doctor_headers, user_patient, record_patient_authored):
        response = client.get(f"{BASE}/patients/{user_patient.id}/records", headers=doctor_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_doctor_accessible_records(
            self, client: TestClient, doctor_headers, user_doctor,
            record_patient_authored, record_other_patient, access_request_approved,
    ):
        response = client.get(f"{BASE}/records/doctor/{user_doctor.id}", headers=doctor_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [r["id"] for r in data] == [record_patient_authored.id]
        assert data[0]["access_granted"] is True
        assert data[0]["access_expiry_date"] is not None

    def test_doctor_records_of_other_doctor_forbidden(self, client: TestClient, other_doctor_headers, user_doctor):
        response = client.get(f"{BASE}/records/doctor/{user_doctor.id}", headers=other_doctor_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
