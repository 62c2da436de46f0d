"""
Mots de passe des comptes MediVault (bcrypt).

bcrypt ne prend en compte que les 72 premiers octets : un mot de passe
plus long est refusé à la création plutôt que tronqué.
Le coût vient de settings.BCRYPT_ROUNDS ; un hash de coût inférieur est
régénéré à la connexion suivante (voir password_needs_rehash).
"""

from typing import Optional

import bcrypt

from app.core.config import settings
from app.core.exceptions import ValidationError

BCRYPT_MAX_BYTES = 72


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash un mot de passe.

    Args:
        password: Mot de passe en clair
        rounds: Coût bcrypt (par défaut settings.BCRYPT_ROUNDS)

    Raises:
        ValidationError: Mot de passe au-delà de 72 octets UTF-8
    """
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Mot de passe trop long (maximum {BCRYPT_MAX_BYTES} octets)")
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Un hash mal formé ou un mot de passe hors limite ne correspond jamais."""
    encoded = plain_password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed_password.encode("utf-8"))
    except ValueError:
        return False


def hash_rounds(hashed_password: str) -> int:
    """Coût d'un hash "$2b$12$...", 0 si illisible."""
    parts = hashed_password.split("$")
    if len(parts) < 4 or not parts[2].isdigit():
        return 0
    return int(parts[2])


def password_needs_rehash(hashed_password: str) -> bool:
    return hash_rounds(hashed_password) < settings.BCRYPT_ROUNDS
