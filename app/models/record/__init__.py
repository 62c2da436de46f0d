"""
Record models - Dossiers médicaux.
"""

from app.models.record.medical_record import MedicalRecord, MUTABLE_RECORD_FIELDS

__all__ = [
    "MedicalRecord",
    "MUTABLE_RECORD_FIELDS",
]
