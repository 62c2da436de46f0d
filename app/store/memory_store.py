"""
Store en mémoire.

Utilisé par les tests de services et pour le développement sans base.
Les entités sont des instances ORM détachées (jamais flushées) : les
valeurs par défaut des colonnes ne s'appliquent donc pas et sont
renseignées ici explicitement.
"""

import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect

from app.core.exceptions import ConflictError
from app.models import (
    AccessRequest,
    AccessRequestStatus,
    AuditLog,
    MedicalRecord,
    MUTABLE_RECORD_FIELDS,
    User,
)
from app.models.types import utcnow
from app.store.sqlalchemy_store import MUTABLE_USER_FIELDS


class InMemoryEntityStore:
    """Implémentation d'EntityStore sur des dictionnaires protégés par un verrou."""

    def __init__(self, clock=utcnow):
        self._clock = clock
        self._lock = threading.RLock()
        self._users: Dict[int, User] = {}
        self._records: Dict[int, MedicalRecord] = {}
        self._requests: Dict[int, AccessRequest] = {}
        self._logs: Dict[int, AuditLog] = {}
        self._ids = {"users": 0, "records": 0, "requests": 0, "logs": 0}

    def _next_id(self, kind: str) -> int:
        self._ids[kind] += 1
        return self._ids[kind]

    @staticmethod
    def _apply_changes(instance, allowed: frozenset, changes: dict):
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Champs non modifiables: {sorted(unknown)}")
        for field, value in changes.items():
            setattr(instance, field, value)
        return instance

    # === Utilisateurs ===

    def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.username == username), None)

    def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        return next((u for u in self._users.values() if u.email.lower() == email), None)

    def list_users(self, role: Optional[str] = None) -> List[User]:
        users = sorted(self._users.values(), key=lambda u: u.id)
        if role is not None:
            users = [u for u in users if u.role == role]
        return users

    def create_user(self, user: User) -> User:
        with self._lock:
            if self.get_user_by_username(user.username) or self.get_user_by_email(user.email):
                raise ConflictError("User en doublon")
            user.id = user.id or self._next_id("users")
            user.created_at = user.created_at or self._clock()
            self._users[user.id] = user
            return user

    def update_user(self, user_id: int, **changes: Any) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            return self._apply_changes(user, MUTABLE_USER_FIELDS, changes)

    # === Dossiers médicaux ===

    def get_record(self, record_id: int) -> Optional[MedicalRecord]:
        return self._records.get(record_id)

    def list_records_by_patient(self, patient_id: int) -> List[MedicalRecord]:
        records = [r for r in self._records.values() if r.patient_id == patient_id]
        return sorted(records, key=lambda r: (r.record_date, r.id), reverse=True)

    def count_records_by_patient(self, patient_id: int) -> int:
        return sum(1 for r in self._records.values() if r.patient_id == patient_id)

    def create_record(self, record: MedicalRecord) -> MedicalRecord:
        with self._lock:
            record.id = self._next_id("records")
            record.verified = bool(record.verified)
            record.created_at = record.created_at or self._clock()
            self._records[record.id] = record
            return record

    def update_record(self, record_id: int, **changes: Any) -> Optional[MedicalRecord]:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                return None
            return self._apply_changes(record, MUTABLE_RECORD_FIELDS, changes)

    # === Demandes d'accès ===

    @staticmethod
    def _snapshot(request: AccessRequest) -> AccessRequest:
        """Copie détachée, comme une lecture SQL isolée par session."""
        return AccessRequest(**{
            attr.key: getattr(request, attr.key)
            for attr in inspect(AccessRequest).column_attrs
        })

    def get_access_request(self, request_id: int) -> Optional[AccessRequest]:
        with self._lock:
            request = self._requests.get(request_id)
            return self._snapshot(request) if request is not None else None

    @staticmethod
    def _by_date_desc(requests) -> List[AccessRequest]:
        return sorted(requests, key=lambda r: (r.request_date, r.id), reverse=True)

    def list_access_requests(self) -> List[AccessRequest]:
        return self._by_date_desc(self._requests.values())

    def list_access_requests_by_patient(self, patient_id: int) -> List[AccessRequest]:
        return self._by_date_desc(r for r in self._requests.values() if r.patient_id == patient_id)

    def list_access_requests_by_doctor(self, doctor_id: int) -> List[AccessRequest]:
        return self._by_date_desc(r for r in self._requests.values() if r.doctor_id == doctor_id)

    def find_approved_grants(
            self,
            doctor_id: int,
            patient_id: int,
            now: datetime,
    ) -> List[AccessRequest]:
        return [
            r for r in sorted(self._requests.values(), key=lambda r: r.id)
            if r.doctor_id == doctor_id
            and r.patient_id == patient_id
            and r.status == AccessRequestStatus.APPROVED.value
            and (r.expiry_date is None or r.expiry_date > now)
        ]

    def create_access_request(self, request: AccessRequest) -> AccessRequest:
        with self._lock:
            request.id = self._next_id("requests")
            request.status = request.status or AccessRequestStatus.PENDING.value
            request.request_date = request.request_date or self._clock()
            request.limited_scope = bool(request.limited_scope)
            request.version = 1
            self._requests[request.id] = request
            return request

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
        with self._lock:
            request = self._requests.get(request_id)
            if request is None or request.version != expected_version:
                return None
            request.status = status
            request.expiry_date = expiry_date
            request.decided_by = decided_by
            request.decided_at = decided_at
            request.version = expected_version + 1
            return self._snapshot(request)

    # === Audit ===

    def append_audit_log(self, entry: AuditLog) -> AuditLog:
        with self._lock:
            entry.id = self._next_id("logs")
            entry.timestamp = entry.timestamp or self._clock()
            self._logs[entry.id] = entry
            return entry

    def list_audit_logs(self) -> List[AuditLog]:
        return sorted(self._logs.values(), key=lambda l: (l.timestamp, l.id), reverse=True)

    def list_audit_logs_by_user(self, user_id: int) -> List[AuditLog]:
        return [l for l in self.list_audit_logs() if l.user_id == user_id]
