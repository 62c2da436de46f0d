"""
Enums MediVault - Définitions de tous les types énumérés.

Les valeurs (chaînes en minuscules) font partie du contrat externe :
les clients filtrent et affichent par ces valeurs, elles ne doivent
pas être renommées.
"""

from enum import Enum


# =============================================================================
# MODULE: USER
# =============================================================================

class UserRole(str, Enum):
    """Rôles applicatifs."""
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


# =============================================================================
# MODULE: ACCESS - Demandes d'accès aux dossiers
# =============================================================================

class AccessRequestStatus(str, Enum):
    """Statuts d'une demande d'accès."""
    PENDING = "pending"      # En attente de décision
    APPROVED = "approved"    # Accordée (fenêtre expiry_date)
    DENIED = "denied"        # Refusée
    REVOKED = "revoked"      # Révoquée après accord


# Statuts qu'une décision peut appliquer
DECISION_STATUSES = frozenset({
    AccessRequestStatus.APPROVED,
    AccessRequestStatus.DENIED,
    AccessRequestStatus.REVOKED,
})


# =============================================================================
# MODULE: AUDIT
# =============================================================================

class AuditAction(str, Enum):
    """
    Vocabulaire fermé des actions journalisées.

    Catégories :
    - AUTH : connexion / déconnexion
    - RECORD : création et consultation de dossiers
    - ACCESS : cycle de vie des demandes d'accès
    - USER : profil et préférences
    """
    # Authentification
    LOGIN = "login"
    LOGOUT = "logout"

    # Dossiers médicaux
    RECORD_CREATED = "record_created"
    RECORD_ACCESSED = "record_accessed"
    RECORDS_ACCESSED = "records_accessed"

    # Demandes d'accès
    ACCESS_REQUESTED = "access_requested"
    ACCESS_APPROVED = "access_approved"
    ACCESS_DENIED = "access_denied"
    ACCESS_REVOKED = "access_revoked"
    ACCESS_ATTEMPT_DENIED = "access_attempt_denied"

    # Utilisateur
    PROFILE_UPDATED = "profile_updated"
    PASSWORD_CHANGED = "password_changed"
    NOTIFICATION_PREFERENCES_UPDATED = "notification_preferences_updated"


# Action d'audit correspondant à chaque décision
DECISION_AUDIT_ACTIONS = {
    AccessRequestStatus.APPROVED: AuditAction.ACCESS_APPROVED,
    AccessRequestStatus.DENIED: AuditAction.ACCESS_DENIED,
    AccessRequestStatus.REVOKED: AuditAction.ACCESS_REVOKED,
}
