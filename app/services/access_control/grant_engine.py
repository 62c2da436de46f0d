"""
Moteur d'octroi d'accès - Cycle de vie des demandes d'accès.

Répond à la question "le médecin D a-t-il un accès courant au dossier
du patient P ?" et applique la machine à états des AccessRequest :

    pending  ──approve──▶ approved ──revoke──▶ revoked
       │                    ▲  │
       └──deny──▶ denied ───┘  └──renew (si expirée)──▶ approved

Toute autre transition lève InvalidTransitionError.

L'expiration est évaluée à la volée avec l'horloge injectée : aucune
tâche de fond ne repasse les demandes expirées en base, elles restent
`approved` et cessent simplement d'accorder l'accès.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Union

from app.core.config import settings
from app.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from app.models import (
    AccessRequest,
    AccessRequestStatus,
    DECISION_STATUSES,
    UserRole,
)
from app.models.types import utcnow
from app.store.base import EntityStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class AccessGrantEngine:
    """
    Cœur du contrôle d'accès médecin → patient.

    Usage:
        engine = AccessGrantEngine(store)
        request = engine.create_access_request(5, 9, "Follow-up", 30)
        engine.decide(request.id, "approved", deciding_user_id=1)
        engine.has_access(5, 9)  # True pendant 30 jours
    """

    def __init__(
            self,
            store: EntityStore,
            clock: Optional[Clock] = None,
            default_duration_days: Optional[int] = None,
            max_duration_days: Optional[int] = None,
    ):
        """
        Args:
            store: Store d'entités injecté
            clock: Horloge UTC (défaut : datetime.now(timezone.utc))
            default_duration_days: Durée appliquée si la demande n'en a pas
            max_duration_days: Durée maximale acceptée à la création
        """
        self.store = store
        self.clock = clock or utcnow
        self.default_duration_days = default_duration_days or settings.DEFAULT_ACCESS_DURATION_DAYS
        self.max_duration_days = max_duration_days or settings.MAX_ACCESS_DURATION_DAYS

    # =========================================================================
    # REQUÊTES
    # =========================================================================

    def active_grants(self, doctor_id: int, patient_id: int) -> List[AccessRequest]:
        """
        Toutes les demandes accordant actuellement l'accès.

        Plusieurs accès peuvent coexister (ré-approbations successives
        sans révocation) : ils ne sont pas fusionnés.
        """
        return self.store.find_approved_grants(doctor_id, patient_id, self.clock())

    def has_access(self, doctor_id: int, patient_id: int) -> bool:
        """True si au moins une demande est approved et non expirée à l'instant présent."""
        return len(self.active_grants(doctor_id, patient_id)) > 0

    # =========================================================================
    # CRÉATION
    # =========================================================================

    def create_access_request(
            self,
            doctor_id: int,
            patient_id: int,
            purpose: str,
            duration: int,
            notes: Optional[str] = None,
            limited_scope: bool = False,
    ) -> AccessRequest:
        """
        Crée une demande en attente. N'accorde aucun accès.

        Les ids sont pris tels quels : vérifier que doctor_id est bien
        l'appelant relève de la passerelle d'autorisation.

        Raises:
            ValidationError: Motif vide ou durée invalide
            NotFoundError: Patient ou médecin inexistant (ou mauvais rôle)
        """
        if not isinstance(purpose, str) or not purpose.strip():
            raise ValidationError("Le motif de la demande est obligatoire")

        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise ValidationError("La durée doit être un nombre entier de jours positif")

        if duration > self.max_duration_days:
            raise ValidationError(
                f"La durée ne peut pas dépasser {self.max_duration_days} jours"
            )

        patient = self.store.get_user(patient_id)
        if patient is None or patient.role != UserRole.PATIENT.value:
            raise NotFoundError(f"Patient {patient_id} non trouvé")

        doctor = self.store.get_user(doctor_id)
        if doctor is None or doctor.role != UserRole.DOCTOR.value:
            raise NotFoundError(f"Médecin {doctor_id} non trouvé")

        request = self.store.create_access_request(
            AccessRequest(
                doctor_id=doctor_id,
                patient_id=patient_id,
                purpose=purpose.strip(),
                duration=duration,
                notes=notes,
                limited_scope=bool(limited_scope),
                status=AccessRequestStatus.PENDING.value,
                request_date=self.clock(),
                expiry_date=None,
            )
        )
        logger.info(
            f"Demande d'accès {request.id} créée : médecin {doctor_id} → patient {patient_id} "
            f"({duration} jours)"
        )
        return request

    # =========================================================================
    # DÉCISION
    # =========================================================================

    def decide(
            self,
            request_id: int,
            new_status: Union[AccessRequestStatus, str],
            deciding_user_id: int,
    ) -> AccessRequest:
        """
        Applique une décision (approved, denied, revoked).

        Raises:
            ValidationError: Statut cible hors décisions possibles
            NotFoundError: Demande inexistante
            InvalidTransitionError: Transition interdite (statut inchangé)
            ConflictError: Demande modifiée entre la lecture et l'écriture
        """
        try:
            target = AccessRequestStatus(new_status)
        except ValueError as e:
            raise ValidationError(f"Statut inconnu : {new_status}") from e

        if target not in DECISION_STATUSES:
            raise ValidationError(f"Statut non applicable par une décision : {target.value}")

        request = self.store.get_access_request(request_id)
        if request is None:
            raise NotFoundError(f"Demande d'accès {request_id} non trouvée")

        # Statut et version lus ensemble : la transition est validée sur cet état
        expected_version = request.version
        current = AccessRequestStatus(request.status)
        now = self.clock()
        expiry_date = self._next_expiry_date(request, current, target, now)

        updated = self.store.transition_access_request(
            request_id,
            expected_version,
            status=target.value,
            expiry_date=expiry_date,
            decided_by=deciding_user_id,
            decided_at=now,
        )
        if updated is None:
            if self.store.get_access_request(request_id) is None:
                raise NotFoundError(f"Demande d'accès {request_id} non trouvée")
            logger.warning(f"⚠️ Conflit sur la demande {request_id} (version {expected_version})")
            raise ConflictError(
                f"La demande {request_id} a été modifiée entre-temps, veuillez recharger"
            )

        logger.info(
            f"Demande {request_id} : {current.value} → {target.value} "
            f"par l'utilisateur {deciding_user_id} (expiration {expiry_date})"
        )
        return updated

    def _next_expiry_date(
            self,
            request: AccessRequest,
            current: AccessRequestStatus,
            target: AccessRequestStatus,
            now: datetime,
    ) -> Optional[datetime]:
        """Valide la transition et calcule la nouvelle date d'expiration."""
        approved = AccessRequestStatus.APPROVED

        if target == approved:
            if current in (AccessRequestStatus.PENDING, AccessRequestStatus.DENIED):
                return now + timedelta(days=self._effective_duration(request))
            # Renouvellement : uniquement un accès déjà échu
            if current == approved and request.is_expired_at(now):
                return now + timedelta(days=self._effective_duration(request))
            if current == approved:
                raise InvalidTransitionError(
                    current.value,
                    target.value,
                    f"La demande {request.id} accorde encore l'accès, renouvellement impossible",
                )

        elif target == AccessRequestStatus.DENIED:
            if current == AccessRequestStatus.PENDING:
                return request.expiry_date

        elif target == AccessRequestStatus.REVOKED:
            # L'expiration est conservée à titre historique
            if current == approved:
                return request.expiry_date

        raise InvalidTransitionError(current.value, target.value)

    def _effective_duration(self, request: AccessRequest) -> int:
        duration = request.duration
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            logger.warning(
                f"⚠️ Demande {request.id} sans durée valide ({duration!r}), "
                f"application de {self.default_duration_days} jours"
            )
            return self.default_duration_days
        return duration
