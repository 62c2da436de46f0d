"""
Passerelle d'autorisation - Médiation de toutes les opérations sur les dossiers.

Chaque opération reçoit l'appelant authentifié et son IP, vérifie le rôle
puis, pour un médecin, l'accès courant via le moteur d'octroi, avant de
toucher au store. Les accès autorisés sensibles sont audités.

Règles par rôle :
- patient : ses propres dossiers uniquement, sans consulter le moteur
- doctor : ses propres dossiers (auto-accès) ou has_access(doctor, patient)
- admin : tout, sans contrôle d'accès, mais ses lectures de données
  patient sont auditées

Un refus lève ForbiddenError (terminal, aucune voie alternative).
Une référence inexistante lève NotFoundError.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models import (
    AccessRequest,
    AccessRequestStatus,
    AuditAction,
    AuditLog,
    DECISION_AUDIT_ACTIONS,
    MedicalRecord,
    UNKNOWN_USER_NAME,
    User,
    UserRole,
)
from app.services.access_control.grant_engine import AccessGrantEngine
from app.services.audit.audit_logger import AuditLogger
from app.store.base import EntityStore

logger = logging.getLogger(__name__)


# =============================================================================
# VUES RETOURNÉES
# =============================================================================

@dataclass
class UserSummary:
    """Résumé d'un utilisateur embarqué dans les listes (placeholder si supprimé)."""
    id: int
    username: Optional[str]
    full_name: str
    role: Optional[str]
    email: Optional[str] = None
    specialty: Optional[str] = None

    @classmethod
    def of(cls, user_id: int, user: Optional[User]) -> "UserSummary":
        if user is None:
            return cls(id=user_id, username=None, full_name=UNKNOWN_USER_NAME, role=None)
        return cls(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            role=user.role,
            email=user.email,
            specialty=user.specialty,
        )


@dataclass
class AccessRequestView:
    request: AccessRequest
    doctor: Optional[UserSummary] = None
    patient: Optional[UserSummary] = None
    record_count: Optional[int] = None


@dataclass
class DoctorRecordView:
    record: MedicalRecord
    access_granted: bool
    access_expiry_date: Optional[datetime] = None


@dataclass
class AuditLogView:
    log: AuditLog
    user: UserSummary


class AuthorizationGate:
    """Contrôle rôle + accès, puis audit, pour chaque opération exposée."""

    def __init__(
            self,
            store: EntityStore,
            engine: AccessGrantEngine,
            audit_logger: AuditLogger,
            audit_denials: bool = True,
    ):
        self.store = store
        self.engine = engine
        self.audit = audit_logger
        self.audit_denials = audit_denials

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _deny(self, caller: User, message: str, details: str, ip_address: Optional[str]):
        """Journalise le refus puis lève ForbiddenError."""
        logger.warning(f"🚫 Accès refusé à l'utilisateur {caller.id} ({caller.role}) : {details}")
        if self.audit_denials:
            self.audit.log(caller.id, AuditAction.ACCESS_ATTEMPT_DENIED, details, ip_address)
        raise ForbiddenError(message)

    def _summary(self, user_id: int) -> UserSummary:
        return UserSummary.of(user_id, self.store.get_user(user_id))

    def can_access_patient(self, caller: User, patient_id: int) -> bool:
        """Prédicat d'accès aux dossiers d'un patient pour l'appelant."""
        if caller.is_admin:
            return True
        if caller.id == patient_id:
            return True
        if caller.is_doctor:
            return self.engine.has_access(caller.id, patient_id)
        return False

    def _is_audited_read(self, caller: User, patient_id: int) -> bool:
        """Lecture croisée d'un médecin ou lecture admin de données patient."""
        if caller.is_admin:
            return True
        return caller.is_doctor and caller.id != patient_id

    def _load_record(self, record_id: int) -> MedicalRecord:
        record = self.store.get_record(record_id)
        if record is None:
            raise NotFoundError(f"Dossier {record_id} non trouvé")
        return record

    def _check_record_access(
            self,
            caller: User,
            record: MedicalRecord,
            operation: str,
            ip_address: Optional[str],
    ) -> None:
        if not self.can_access_patient(caller, record.patient_id):
            self._deny(
                caller,
                "Accès refusé à ce dossier",
                f"{operation} record {record.id} of patient {record.patient_id}",
                ip_address,
            )

    def _audit_record_access(
            self,
            caller: User,
            record: MedicalRecord,
            operation: str,
            ip_address: Optional[str],
    ) -> None:
        if self._is_audited_read(caller, record.patient_id):
            self.audit.log(
                caller.id,
                AuditAction.RECORD_ACCESSED,
                f"{caller.role} {operation} record {record.id} of patient {record.patient_id}",
                ip_address,
            )

    def _authorize_record(
            self,
            caller: User,
            record: MedicalRecord,
            operation: str,
            ip_address: Optional[str],
    ) -> None:
        self._check_record_access(caller, record, operation, ip_address)
        self._audit_record_access(caller, record, operation, ip_address)

    # =========================================================================
    # DOSSIERS MÉDICAUX
    # =========================================================================

    def get_record(self, caller: User, record_id: int, ip_address: Optional[str] = None) -> MedicalRecord:
        record = self._load_record(record_id)
        self._authorize_record(caller, record, "viewed", ip_address)
        return record

    def download_record(self, caller: User, record_id: int, ip_address: Optional[str] = None) -> MedicalRecord:
        record = self._load_record(record_id)
        self._authorize_record(caller, record, "downloaded", ip_address)
        return record

    def list_patient_records(
            self,
            caller: User,
            patient_id: int,
            ip_address: Optional[str] = None,
    ) -> List[MedicalRecord]:
        if not self.can_access_patient(caller, patient_id):
            self._deny(
                caller,
                "Accès refusé aux dossiers de ce patient",
                f"list records of patient {patient_id}",
                ip_address,
            )

        records = self.store.list_records_by_patient(patient_id)

        if self._is_audited_read(caller, patient_id):
            self.audit.log(
                caller.id,
                AuditAction.RECORDS_ACCESSED,
                f"{caller.role} accessed records of patient {patient_id}",
                ip_address,
            )
        return records

    def list_doctor_records(
            self,
            caller: User,
            doctor_id: int,
            ip_address: Optional[str] = None,
    ) -> List[DoctorRecordView]:
        """
        Tous les dossiers visibles par un médecin : les siens (auto-accès)
        puis ceux des patients pour lesquels il détient un accès courant,
        avec la date d'expiration la plus lointaine.
        """
        if not (caller.is_admin or (caller.is_doctor and caller.id == doctor_id)):
            self._deny(
                caller,
                "Accès refusé",
                f"list accessible records of doctor {doctor_id}",
                ip_address,
            )

        now = self.engine.clock()
        expiries: Dict[int, Optional[datetime]] = {}
        for request in self.store.list_access_requests_by_doctor(doctor_id):
            if not request.grants_access_at(now) or request.patient_id == doctor_id:
                continue
            previous = expiries.get(request.patient_id, now)
            if request.expiry_date is None or previous is None:
                expiries[request.patient_id] = None
            else:
                expiries[request.patient_id] = max(previous, request.expiry_date)

        views = [
            DoctorRecordView(record=r, access_granted=False)
            for r in self.store.list_records_by_patient(doctor_id)
        ]
        for patient_id, expiry in sorted(expiries.items()):
            views.extend(
                DoctorRecordView(record=r, access_granted=True, access_expiry_date=expiry)
                for r in self.store.list_records_by_patient(patient_id)
            )

        self.audit.log(
            caller.id,
            AuditAction.RECORDS_ACCESSED,
            f"{caller.role} viewed accessible records of doctor {doctor_id} "
            f"(patients {sorted(expiries)})",
            ip_address,
        )
        return views

    def create_record(
            self,
            caller: User,
            patient_id: int,
            title: str,
            record_type: str,
            record_date: date,
            doctor_name: Optional[str] = None,
            notes: Optional[str] = None,
            file_url: Optional[str] = None,
            ip_address: Optional[str] = None,
    ) -> MedicalRecord:
        """
        Crée un dossier pour un patient.

        Un dossier déposé par un médecin est vérifié d'office et porte
        le médecin comme auteur ; un dépôt patient ou admin ne l'est pas.
        """
        patient = self.store.get_user(patient_id)
        if patient is None:
            raise NotFoundError(f"Patient {patient_id} non trouvé")

        if not self.can_access_patient(caller, patient_id):
            self._deny(
                caller,
                "Accès refusé",
                f"create record for patient {patient_id}",
                ip_address,
            )

        authored_by_doctor = caller.is_doctor
        record = self.store.create_record(
            MedicalRecord(
                patient_id=patient_id,
                title=title,
                record_type=record_type,
                record_date=record_date,
                doctor_id=caller.id if authored_by_doctor else None,
                doctor_name=doctor_name or (caller.full_name if authored_by_doctor else None),
                notes=notes,
                file_url=file_url,
                verified=authored_by_doctor,
            )
        )

        self.audit.log(
            caller.id,
            AuditAction.RECORD_CREATED,
            f"{caller.role} created record {record.id} for patient {patient_id}",
            ip_address,
        )
        return record

    def update_record(
            self,
            caller: User,
            record_id: int,
            changes: Dict[str, Any],
            ip_address: Optional[str] = None,
    ) -> MedicalRecord:
        """Met à jour verified / notes / file_url. Seul un médecin ou un admin vérifie."""
        record = self._load_record(record_id)
        self._check_record_access(caller, record, "updated", ip_address)

        if changes.get("verified", False) is None:
            raise ValidationError("verified ne peut pas être nul")

        if changes.get("verified") and caller.is_patient:
            self._deny(
                caller,
                "Seul un médecin peut vérifier un dossier",
                f"verify record {record_id} of patient {record.patient_id}",
                ip_address,
            )

        if not changes:
            return record
        self._audit_record_access(caller, record, "updated", ip_address)
        return self.store.update_record(record_id, **changes)

    # =========================================================================
    # UTILISATEURS
    # =========================================================================

    def get_user(self, caller: User, user_id: int, ip_address: Optional[str] = None) -> User:
        """Profil : soi-même, annuaire des médecins, patient suivi, ou admin."""
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"Utilisateur {user_id} non trouvé")

        allowed = (
            caller.is_admin
            or caller.id == user_id
            or user.is_doctor
            or (user.is_patient and caller.is_doctor and self.engine.has_access(caller.id, user_id))
        )
        if not allowed:
            self._deny(caller, "Accès refusé", f"view profile of user {user_id}", ip_address)

        if user.is_patient and self._is_audited_read(caller, user_id):
            self.audit.log(
                caller.id,
                AuditAction.RECORD_ACCESSED,
                f"{caller.role} viewed profile of patient {user_id}",
                ip_address,
            )
        return user

    def ensure_self_or_admin(self, caller: User, user_id: int, operation: str, ip_address: Optional[str] = None):
        if not (caller.is_admin or caller.id == user_id):
            self._deny(caller, "Accès refusé", f"{operation} of user {user_id}", ip_address)

    def ensure_role(self, caller: User, *roles: UserRole, operation: str, ip_address: Optional[str] = None):
        if not caller.has_role(*roles):
            self._deny(caller, "Permissions insuffisantes", operation, ip_address)

    # =========================================================================
    # DEMANDES D'ACCÈS
    # =========================================================================

    def list_requests_for_patient(
            self,
            caller: User,
            patient_id: int,
            ip_address: Optional[str] = None,
    ) -> List[AccessRequestView]:
        if caller.is_patient and caller.id != patient_id:
            self._deny(
                caller,
                "Accès refusé",
                f"list access requests of patient {patient_id}",
                ip_address,
            )

        requests = self.store.list_access_requests_by_patient(patient_id)
        if caller.is_doctor and caller.id != patient_id:
            requests = [r for r in requests if r.doctor_id == caller.id]

        if self._is_audited_read(caller, patient_id):
            self.audit.log(
                caller.id,
                AuditAction.RECORDS_ACCESSED,
                f"{caller.role} listed access requests of patient {patient_id}",
                ip_address,
            )

        return [AccessRequestView(request=r, doctor=self._summary(r.doctor_id)) for r in requests]

    def list_requests_for_doctor(
            self,
            caller: User,
            doctor_id: int,
            ip_address: Optional[str] = None,
    ) -> List[AccessRequestView]:
        if caller.is_doctor and caller.id != doctor_id:
            self._deny(
                caller,
                "Accès refusé",
                f"list access requests of doctor {doctor_id}",
                ip_address,
            )

        requests = self.store.list_access_requests_by_doctor(doctor_id)
        if caller.is_patient:
            requests = [r for r in requests if r.patient_id == caller.id]

        return [
            AccessRequestView(
                request=r,
                patient=self._summary(r.patient_id),
                record_count=self.store.count_records_by_patient(r.patient_id),
            )
            for r in requests
        ]

    def list_all_requests(self, caller: User, ip_address: Optional[str] = None) -> List[AccessRequestView]:
        self.ensure_role(caller, UserRole.ADMIN, operation="list all access requests", ip_address=ip_address)
        return [
            AccessRequestView(
                request=r,
                doctor=self._summary(r.doctor_id),
                patient=self._summary(r.patient_id),
            )
            for r in self.store.list_access_requests()
        ]

    def request_access(
            self,
            caller: User,
            doctor_id: int,
            patient_id: int,
            purpose: str,
            duration: int,
            notes: Optional[str] = None,
            limited_scope: bool = False,
            ip_address: Optional[str] = None,
    ) -> AccessRequest:
        """Un médecin ne peut demander un accès qu'en son propre nom."""
        if not caller.is_doctor or caller.id != doctor_id:
            self._deny(
                caller,
                "Seul le médecin concerné peut créer cette demande",
                f"request access as doctor {doctor_id} to patient {patient_id}",
                ip_address,
            )

        request = self.engine.create_access_request(
            doctor_id=doctor_id,
            patient_id=patient_id,
            purpose=purpose,
            duration=duration,
            notes=notes,
            limited_scope=limited_scope,
        )

        self.audit.log(
            caller.id,
            AuditAction.ACCESS_REQUESTED,
            f"Doctor {doctor_id} requested access to patient {patient_id} "
            f"for {duration} days (request {request.id})",
            ip_address,
        )
        return request

    def decide_request(
            self,
            caller: User,
            request_id: int,
            new_status: str,
            ip_address: Optional[str] = None,
    ) -> AccessRequest:
        """
        Décision sur une demande.

        - admin : toute décision
        - patient concerné : approuver, refuser, révoquer
        - médecin demandeur : révoquer uniquement
        """
        try:
            target = AccessRequestStatus(new_status)
        except ValueError as e:
            raise ValidationError(f"Statut inconnu : {new_status}") from e

        request = self.store.get_access_request(request_id)
        if request is None:
            raise NotFoundError(f"Demande d'accès {request_id} non trouvée")

        allowed = (
            caller.is_admin
            or (caller.is_patient and caller.id == request.patient_id)
            or (
                caller.is_doctor
                and caller.id == request.doctor_id
                and target == AccessRequestStatus.REVOKED
            )
        )
        if not allowed:
            self._deny(
                caller,
                "Vous ne pouvez pas statuer sur cette demande",
                f"set request {request_id} to {target.value}",
                ip_address,
            )

        updated = self.engine.decide(request_id, target, caller.id)

        self.audit.log(
            caller.id,
            DECISION_AUDIT_ACTIONS[target],
            f"{caller.role} set request {request_id} to {target.value} "
            f"for doctor {updated.doctor_id} to patient {updated.patient_id}",
            ip_address,
        )
        return updated

    def check_access(
            self,
            caller: User,
            doctor_id: int,
            patient_id: int,
            ip_address: Optional[str] = None,
    ) -> Tuple[bool, List[AccessRequest]]:
        """Accès courant d'un médecin sur un patient, pour les deux intéressés ou un admin."""
        if not (caller.is_admin or caller.id in (doctor_id, patient_id)):
            self._deny(
                caller,
                "Accès refusé",
                f"check access of doctor {doctor_id} to patient {patient_id}",
                ip_address,
            )
        grants = self.engine.active_grants(doctor_id, patient_id)
        return len(grants) > 0, grants

    # =========================================================================
    # AUDIT
    # =========================================================================

    def list_audit_logs(self, caller: User, ip_address: Optional[str] = None) -> List[AuditLogView]:
        self.ensure_role(caller, UserRole.ADMIN, operation="list audit logs", ip_address=ip_address)
        summaries: Dict[int, UserSummary] = {}
        views = []
        for log in self.store.list_audit_logs():
            if log.user_id not in summaries:
                summaries[log.user_id] = self._summary(log.user_id)
            views.append(AuditLogView(log=log, user=summaries[log.user_id]))
        return views

    def list_user_audit_logs(
            self,
            caller: User,
            user_id: int,
            ip_address: Optional[str] = None,
    ) -> List[AuditLog]:
        self.ensure_self_or_admin(caller, user_id, "view audit logs", ip_address)
        return self.store.list_audit_logs_by_user(user_id)
