"""
Contrat du store d'entités.

Le moteur d'accès, la passerelle d'autorisation et le journal d'audit
ne connaissent que ce protocole : le backend (PostgreSQL/SQLite via
SQLAlchemy, ou mémoire pour les tests) est injecté.

Règles communes aux implémentations :
- chaque opération est transactionnelle à elle seule
- un id inconnu en lecture retourne None (jamais d'exception)
- toute défaillance de persistance lève StoreError
- les listes sont triées du plus récent au plus ancien
"""

from datetime import datetime
from typing import Any, List, Optional, Protocol, runtime_checkable

from app.models import AccessRequest, AuditLog, MedicalRecord, User


@runtime_checkable
class EntityStore(Protocol):
    """Opérations CRUD et requêtes du domaine MediVault."""

    # === Utilisateurs ===

    def get_user(self, user_id: int) -> Optional[User]: ...

    def get_user_by_username(self, username: str) -> Optional[User]: ...

    def get_user_by_email(self, email: str) -> Optional[User]: ...

    def list_users(self, role: Optional[str] = None) -> List[User]: ...

    def create_user(self, user: User) -> User: ...

    def update_user(self, user_id: int, **changes: Any) -> Optional[User]: ...

    # === Dossiers médicaux ===

    def get_record(self, record_id: int) -> Optional[MedicalRecord]: ...

    def list_records_by_patient(self, patient_id: int) -> List[MedicalRecord]: ...

    def count_records_by_patient(self, patient_id: int) -> int: ...

    def create_record(self, record: MedicalRecord) -> MedicalRecord: ...

    def update_record(self, record_id: int, **changes: Any) -> Optional[MedicalRecord]: ...

    # === Demandes d'accès ===

    def get_access_request(self, request_id: int) -> Optional[AccessRequest]: ...

    def list_access_requests(self) -> List[AccessRequest]: ...

    def list_access_requests_by_patient(self, patient_id: int) -> List[AccessRequest]: ...

    def list_access_requests_by_doctor(self, doctor_id: int) -> List[AccessRequest]: ...

    def find_approved_grants(
            self,
            doctor_id: int,
            patient_id: int,
            now: datetime,
    ) -> List[AccessRequest]:
        """Demandes approved dont expiry_date est NULL ou > now."""
        ...

    def create_access_request(self, request: AccessRequest) -> AccessRequest: ...

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
        """
        Compare-and-set sur (id, version).

        Retourne la demande mise à jour (version + 1), ou None si aucune
        ligne ne correspond (id inconnu ou version dépassée).
        """
        ...

    # === Audit ===

    def append_audit_log(self, entry: AuditLog) -> AuditLog: ...

    def list_audit_logs(self) -> List[AuditLog]: ...

    def list_audit_logs_by_user(self, user_id: int) -> List[AuditLog]: ...
