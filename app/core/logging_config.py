"""Configuration du logging applicatif."""
import logging
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure le logger racine une seule fois au démarrage.

    Args:
        level: Niveau de log (par défaut settings.LOG_LEVEL)
    """
    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format=LOG_FORMAT,
    )
