"""Gestion des tokens JWT d'accès (HS256 par défaut, ES256 avec paire de clés)."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Dict, Any

from jose import jwt, JWTError

from app.core.config import settings


def _read_key(path: str, kind: str) -> str:
    key_path = Path(path)
    if not key_path.exists():
        raise FileNotFoundError(f"Clé {kind} JWT non trouvée: {key_path}")
    return key_path.read_text()


def _signing_key() -> str:
    """Clé de signature selon l'algorithme configuré."""
    if settings.uses_asymmetric_jwt:
        return _read_key(settings.JWT_PRIVATE_KEY_PATH, "privée")
    return settings.JWT_SECRET_KEY


def _verification_key() -> str:
    """Clé de vérification selon l'algorithme configuré."""
    if settings.uses_asymmetric_jwt:
        return _read_key(settings.JWT_PUBLIC_KEY_PATH, "publique")
    return settings.JWT_SECRET_KEY


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Crée un token JWT d'accès signé.

    Args:
        data: Claims à encoder (sub, role, ...)
        expires_delta: Durée de validité personnalisée

    Returns:
        Token JWT signé
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    # Claims standards JWT
    to_encode.update({
        "exp": expire,
        "iat": now,
        "iss": settings.JWT_ISSUER,
        "type": "access",
    })

    return jwt.encode(to_encode, _signing_key(), algorithm=settings.ALGORITHM)


def verify_token(token: str, token_type: str = "access") -> Dict[str, Any]:
    """
    Vérifie et décode un token JWT.

    Raises:
        JWTError: Si le token est invalide, expiré, de mauvais type ou d'un autre émetteur
    """
    payload = jwt.decode(
        token,
        _verification_key(),
        algorithms=[settings.ALGORITHM],
        issuer=settings.JWT_ISSUER,
        options={"require_exp": True, "require_iat": True},
    )

    if payload.get("type") != token_type:
        raise JWTError(f"Type de token inattendu, attendu: {token_type}")

    return payload
