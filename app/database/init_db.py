"""
Initialisation de la base de données MediVault
Crée les tables, le compte admin et (optionnellement) un jeu de données de démonstration.
"""

import logging
import sys
from datetime import date, timedelta
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import MediVaultError
from app.core.logging_config import configure_logging
from app.core.security import hash_password
from app.database.base import Base
from app.database.session import engine, db_session, check_database_connection
from app.models import AccessRequestStatus, MedicalRecord, User, UserRole
from app.services.access_control import AccessGrantEngine
from app.services.user_settings import UserSettings, dump_user_settings
from app.store import SqlAlchemyEntityStore

logger = logging.getLogger(__name__)


# =============================================================================
# DONNÉES DE DÉMONSTRATION
# =============================================================================

DEMO_ADMIN = {
    "username": "admin",
    "full_name": "System Administrator",
    "email": "admin@medivault.com",
    "role": UserRole.ADMIN,
}

DEMO_DOCTORS = [
    {"username": "dr.smith", "full_name": "Dr. John Smith", "email": "dr.smith@medivault.com",
     "specialty": "Cardiology"},
    {"username": "dr.patel", "full_name": "Dr. Anita Patel", "email": "dr.patel@medivault.com",
     "specialty": "Neurology"},
    {"username": "dr.johnson", "full_name": "Dr. Mark Johnson", "email": "dr.johnson@medivault.com",
     "specialty": "Pediatrics"},
]

DEMO_PATIENTS = [
    {"username": "patient1", "full_name": "Sarah Wilson", "email": "sarah@example.com"},
    {"username": "patient2", "full_name": "Michael Chen", "email": "michael@example.com"},
    {"username": "patient3", "full_name": "Emma Rodriguez", "email": "emma@example.com"},
]

# (titre, type, ancienneté en jours, index du médecin auteur)
DEMO_RECORDS = [
    ("Annual Physical Examination", "Examination", 0, 0),
    ("Blood Test Results", "Laboratory", 30, 1),
    ("Vaccination Record", "Immunization", 60, 2),
]


# =============================================================================
# 1. CRÉATION DES TABLES
# =============================================================================

def create_all_tables() -> bool:
    """
    Crée toutes les tables de la base de données.

    Returns:
        True si succès, False sinon
    """
    try:
        logger.info("📦 Création des tables...")
        Base.metadata.create_all(bind=engine)

        table_names = list(Base.metadata.tables.keys())
        logger.info(f"✅ {len(table_names)} tables créées : {', '.join(sorted(table_names))}")

        return True
    except SQLAlchemyError as e:
        logger.error(f"❌ Erreur lors de la création des tables : {e}")
        return False


def drop_all_tables() -> bool:
    """
    Supprime toutes les tables de la base de données.

    ⚠️ ATTENTION : Cette action est irréversible !

    Returns:
        True si succès, False sinon
    """
    try:
        logger.warning("❗️ Suppression de toutes les tables...")
        Base.metadata.drop_all(bind=engine)
        logger.info("✅ Toutes les tables ont été supprimées")
        return True
    except SQLAlchemyError as e:
        logger.error(f"❌ Erreur lors de la suppression des tables : {e}")
        return False


# =============================================================================
# 2. UTILISATEURS
# =============================================================================

def _get_or_create_user(store: SqlAlchemyEntityStore, data: dict, role: UserRole, password: str) -> User:
    existing = store.get_user_by_username(data["username"])
    if existing:
        logger.debug(f"   ℹ️ {data['username']} existe déjà")
        return existing

    user = store.create_user(
        User(
            username=data["username"],
            password_hash=hash_password(password),
            full_name=data["full_name"],
            email=data["email"],
            role=role.value,
            specialty=data.get("specialty"),
            user_settings=dump_user_settings(UserSettings()),
        )
    )
    logger.info(f"   ✅ {role.value} {user.username} créé (id={user.id})")
    return user


def init_admin(store: SqlAlchemyEntityStore, password: str) -> User:
    """Crée le compte administrateur s'il n'existe pas."""
    logger.info("👤 Création du compte administrateur...")
    return _get_or_create_user(store, DEMO_ADMIN, UserRole.ADMIN, password)


def init_demo_users(store: SqlAlchemyEntityStore, password: str) -> Dict[str, List[User]]:
    logger.info("👥 Création des médecins et patients de démonstration...")
    return {
        "doctors": [_get_or_create_user(store, d, UserRole.DOCTOR, password) for d in DEMO_DOCTORS],
        "patients": [_get_or_create_user(store, p, UserRole.PATIENT, password) for p in DEMO_PATIENTS],
    }


# =============================================================================
# 3. DOSSIERS ET DEMANDES D'ACCÈS
# =============================================================================

def init_demo_records(store: SqlAlchemyEntityStore, doctors: List[User], patients: List[User]) -> int:
    """Trois dossiers vérifiés par patient, un par médecin. Idempotent par patient."""
    logger.info("📄 Création des dossiers de démonstration...")
    created = 0
    today = date.today()

    for patient in patients:
        if store.count_records_by_patient(patient.id) > 0:
            continue
        for title, record_type, age_days, doctor_index in DEMO_RECORDS:
            doctor = doctors[doctor_index]
            store.create_record(
                MedicalRecord(
                    patient_id=patient.id,
                    title=title,
                    record_type=record_type,
                    record_date=today - timedelta(days=age_days),
                    doctor_id=doctor.id,
                    doctor_name=doctor.full_name,
                    notes=f"{title} for {patient.full_name}.",
                    verified=True,
                )
            )
            created += 1

    logger.info(f"   ✅ {created} dossiers créés")
    return created


def init_demo_access_requests(
        store: SqlAlchemyEntityStore,
        admin: User,
        doctors: List[User],
        patients: List[User],
) -> int:
    """
    Une demande de 30 jours par couple médecin/patient, approuvée par l'admin.

    Passe par le moteur d'accès pour que expiry_date soit calculée.
    """
    logger.info("🔐 Création des demandes d'accès de démonstration...")
    grant_engine = AccessGrantEngine(store)
    created = 0

    for doctor in doctors:
        for patient in patients:
            if store.find_approved_grants(doctor.id, patient.id, grant_engine.clock()):
                continue
            request = grant_engine.create_access_request(
                doctor_id=doctor.id,
                patient_id=patient.id,
                purpose="Ongoing care",
                duration=30,
                notes=f"Ongoing medical care for {patient.full_name} from {doctor.full_name}",
            )
            grant_engine.decide(request.id, AccessRequestStatus.APPROVED, admin.id)
            created += 1

    logger.info(f"   ✅ {created} accès accordés")
    return created


# =============================================================================
# 4. INITIALISATION COMPLÈTE
# =============================================================================

def init_database(
    drop_existing: bool = False,
    with_demo_data: bool = False,
    password: str = "password123",
) -> bool:
    """
    Initialise complètement la base de données MediVault.

    Étapes :
    1. Vérifie la connexion
    2. (Optionnel) Supprime les tables existantes
    3. Crée toutes les tables
    4. Crée le compte administrateur
    5. (Optionnel) Crée médecins, patients, dossiers et accès de démonstration

    Returns:
        True si initialisation réussie, False sinon
    """
    logger.info("=" * 60)
    logger.info("🚀 INITIALISATION DE LA BASE DE DONNÉES MEDIVAULT")
    logger.info("=" * 60)

    logger.info("📡 Vérification de la connexion...")
    if not check_database_connection():
        logger.error("❌ Impossible de se connecter à la base")
        logger.error("   Vérifiez que DATABASE_URL est correct")
        return False

    if drop_existing:
        logger.warning("⚠️ Mode DROP_EXISTING activé")
        if not drop_all_tables():
            return False

    if not create_all_tables():
        return False

    try:
        with db_session() as db:
            store = SqlAlchemyEntityStore(db)
            admin = init_admin(store, password)

            if with_demo_data:
                users = init_demo_users(store, password)
                init_demo_records(store, users["doctors"], users["patients"])
                init_demo_access_requests(store, admin, users["doctors"], users["patients"])
    except (SQLAlchemyError, MediVaultError) as e:
        logger.error(f"❌ Erreur lors de l'initialisation des données : {e}")
        return False

    logger.info("✅ Base de données initialisée")
    return True


# =============================================================================
# 5. POINT D'ENTRÉE CLI
# =============================================================================

def main():
    """
    Point d'entrée pour exécution en ligne de commande.

    Usage:
        python -m app.database.init_db
        python -m app.database.init_db --demo
        python -m app.database.init_db --drop --demo
    """
    import argparse

    configure_logging()

    parser = argparse.ArgumentParser(description="Initialise la base de données MediVault")
    parser.add_argument(
        '--drop',
        action='store_true',
        help="Supprime les tables existantes avant création (ATTENTION !)"
    )
    parser.add_argument(
        '--demo',
        action='store_true',
        help="Crée les médecins, patients, dossiers et accès de démonstration"
    )
    parser.add_argument(
        '--password',
        default="password123",
        help="Mot de passe des comptes créés (défaut: password123)"
    )

    args = parser.parse_args()

    if args.drop:
        print("\n⚠️  ATTENTION : Vous allez SUPPRIMER toutes les tables existantes !")
        response = input("Êtes-vous sûr ? (oui/non) : ")
        if response.lower() != 'oui':
            print("Annulé.")
            sys.exit(0)

    success = init_database(
        drop_existing=args.drop,
        with_demo_data=args.demo,
        password=args.password,
    )

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
