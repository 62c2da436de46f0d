"""
Services du module Record.

Mise en forme des réponses ; le contrôle d'accès est entièrement
délégué à la passerelle d'autorisation.
"""
from typing import List

from app.api.v1.record.schemas import DoctorRecordResponse, RecordResponse
from app.models import MedicalRecord
from app.services.access_control import DoctorRecordView


def build_doctor_records(views: List[DoctorRecordView]) -> List[DoctorRecordResponse]:
    return [
        DoctorRecordResponse(
            **RecordResponse.model_validate(view.record).model_dump(),
            access_granted=view.access_granted,
            access_expiry_date=view.access_expiry_date,
        )
        for view in views
    ]


def render_record_text(record: MedicalRecord) -> str:
    """Export texte d'un dossier (le fichier lui-même n'est pas stocké ici)."""
    lines = [
        f"Medical Record: {record.title}",
        f"Date: {record.record_date.isoformat()}",
        f"Type: {record.record_type}",
        f"Doctor: {record.doctor_name or 'Not specified'}",
        f"Patient ID: {record.patient_id}",
        f"Notes: {record.notes or 'None'}",
        f"Verified: {'Yes' if record.verified else 'No'}",
    ]
    return "\n".join(lines) + "\n"
