"""
Store SQLAlchemy (PostgreSQL en production, SQLite en tests).

Une instance est liée à une session (une session par requête HTTP,
voir app.database.session.get_db). Chaque écriture est commitée
immédiatement : les opérations du store sont transactionnelles une à une.
"""

import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, StoreError
from app.models import (
    AccessRequest,
    AccessRequestStatus,
    AuditLog,
    MedicalRecord,
    MUTABLE_RECORD_FIELDS,
    User,
)

logger = logging.getLogger(__name__)

# Champs User modifiables via update_user (id et role exclus)
MUTABLE_USER_FIELDS = frozenset({
    "full_name", "email", "specialty", "phone", "password_hash", "user_settings",
})


class SqlAlchemyEntityStore:
    """Implémentation d'EntityStore sur une session SQLAlchemy."""

    def __init__(self, db: Session):
        """
        Args:
            db: Session SQLAlchemy (durée de vie gérée par l'appelant)
        """
        self.db = db

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _save(self, instance):
        """Ajoute, commite et recharge une instance."""
        try:
            self.db.add(instance)
            self.db.commit()
            self.db.refresh(instance)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Contrainte d'unicité violée ({type(instance).__name__}): {e.orig}")
            raise ConflictError(f"{type(instance).__name__} en doublon") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Écriture {type(instance).__name__} impossible: {e}")
            raise StoreError(f"Échec d'écriture {type(instance).__name__}") from e
        return instance

    def _scalars(self, query) -> list:
        try:
            return list(self.db.execute(query).scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"❌ Lecture impossible: {e}")
            raise StoreError("Échec de lecture") from e

    def _get(self, model, entity_id: int):
        try:
            return self.db.get(model, entity_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ Lecture {model.__name__} {entity_id} impossible: {e}")
            raise StoreError(f"Échec de lecture {model.__name__}") from e

    def _apply_changes(self, instance, allowed: frozenset, changes: dict):
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Champs non modifiables: {sorted(unknown)}")
        for field, value in changes.items():
            setattr(instance, field, value)
        return self._save(instance)

    # =========================================================================
    # UTILISATEURS
    # =========================================================================

    def get_user(self, user_id: int) -> Optional[User]:
        return self._get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        users = self._scalars(select(User).where(User.username == username))
        return users[0] if users else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        users = self._scalars(select(User).where(func.lower(User.email) == email.lower()))
        return users[0] if users else None

    def list_users(self, role: Optional[str] = None) -> List[User]:
        query = select(User)
        if role is not None:
            query = query.where(User.role == role)
        return self._scalars(query.order_by(User.id))

    def create_user(self, user: User) -> User:
        return self._save(user)

    def update_user(self, user_id: int, **changes: Any) -> Optional[User]:
        user = self.get_user(user_id)
        if user is None:
            return None
        return self._apply_changes(user, MUTABLE_USER_FIELDS, changes)

    # =========================================================================
    # DOSSIERS MÉDICAUX
    # =========================================================================

    def get_record(self, record_id: int) -> Optional[MedicalRecord]:
        return self._get(MedicalRecord, record_id)

    def list_records_by_patient(self, patient_id: int) -> List[MedicalRecord]:
        query = (
            select(MedicalRecord)
            .where(MedicalRecord.patient_id == patient_id)
            .order_by(MedicalRecord.record_date.desc(), MedicalRecord.id.desc())
        )
        return self._scalars(query)

    def count_records_by_patient(self, patient_id: int) -> int:
        try:
            return self.db.execute(
                select(func.count(MedicalRecord.id)).where(MedicalRecord.patient_id == patient_id)
            ).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"❌ Comptage des dossiers du patient {patient_id} impossible: {e}")
            raise StoreError("Échec de lecture") from e

    def create_record(self, record: MedicalRecord) -> MedicalRecord:
        return self._save(record)

    def update_record(self, record_id: int, **changes: Any) -> Optional[MedicalRecord]:
        record = self.get_record(record_id)
        if record is None:
            return None
        return self._apply_changes(record, MUTABLE_RECORD_FIELDS, changes)

    # =========================================================================
    # DEMANDES D'ACCÈS
    # =========================================================================

    def get_access_request(self, request_id: int) -> Optional[AccessRequest]:
        return self._get(AccessRequest, request_id)

    def list_access_requests(self) -> List[AccessRequest]:
        query = select(AccessRequest).order_by(
            AccessRequest.request_date.desc(), AccessRequest.id.desc()
        )
        return self._scalars(query)

    def list_access_requests_by_patient(self, patient_id: int) -> List[AccessRequest]:
        query = (
            select(AccessRequest)
            .where(AccessRequest.patient_id == patient_id)
            .order_by(AccessRequest.request_date.desc(), AccessRequest.id.desc())
        )
        return self._scalars(query)

    def list_access_requests_by_doctor(self, doctor_id: int) -> List[AccessRequest]:
        query = (
            select(AccessRequest)
            .where(AccessRequest.doctor_id == doctor_id)
            .order_by(AccessRequest.request_date.desc(), AccessRequest.id.desc())
        )
        return self._scalars(query)

    def find_approved_grants(
            self,
            doctor_id: int,
            patient_id: int,
            now: datetime,
    ) -> List[AccessRequest]:
        query = (
            select(AccessRequest)
            .where(
                AccessRequest.doctor_id == doctor_id,
                AccessRequest.patient_id == patient_id,
                AccessRequest.status == AccessRequestStatus.APPROVED.value,
                or_(
                    AccessRequest.expiry_date.is_(None),
                    AccessRequest.expiry_date > now,
                ),
            )
            .order_by(AccessRequest.id)
        )
        return self._scalars(query)

    def create_access_request(self, request: AccessRequest) -> AccessRequest:
        return self._save(request)

    def transition_access_request(
            self,
            request_id: int,
            expected_version: int,
            *,
            status: str,
            expiry_date: Optional[datetime],
            decided_by: int,
            decided_at: datetime,
    ) -> Optional[AccessRequest]:
        stmt = (
            update(AccessRequest)
            .where(
                AccessRequest.id == request_id,
                AccessRequest.version == expected_version,
            )
            .values(
                status=status,
                expiry_date=expiry_date,
                decided_by=decided_by,
                decided_at=decided_at,
                version=expected_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Transition de la demande {request_id} impossible: {e}")
            raise StoreError(f"Échec de mise à jour de la demande {request_id}") from e

        if result.rowcount == 0:
            return None

        try:
            return self.db.get(AccessRequest, request_id, populate_existing=True)
        except SQLAlchemyError as e:
            logger.error(f"❌ Relecture de la demande {request_id} impossible: {e}")
            raise StoreError(f"Échec de lecture de la demande {request_id}") from e

    # =========================================================================
    # AUDIT
    # =========================================================================

    def append_audit_log(self, entry: AuditLog) -> AuditLog:
        return self._save(entry)

    def list_audit_logs(self) -> List[AuditLog]:
        query = select(AuditLog).order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        return self._scalars(query)

    def list_audit_logs_by_user(self, user_id: int) -> List[AuditLog]:
        query = (
            select(AuditLog)
            .where(AuditLog.user_id == user_id)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        )
        return self._scalars(query)
