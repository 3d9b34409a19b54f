"""
Configuration du logging de l'application via loguru.

Fournit un logging structuré avec :
- Sortie console : lisible par l'humain, colorée, pour la surveillance en temps réel
- Sortie fichier : sérialisée en JSON, avec rotation, pour l'analyse historique
- Redirection des loggers standard de httpx/httpcore vers loguru

Niveaux utilisés par le coeur :
- DEBUG : attentes du limiteur de débit, hits/miss du cache, requêtes émises
- INFO : replis du moteur de recommandation, notes enregistrées
- WARNING : nouvelles tentatives du transport, notes refusées
"""

import logging
import sys
from pathlib import Path

from loguru import logger

# Loggers standard des bibliothèques HTTP redirigés vers loguru
_HTTP_LOGGERS = ("httpx", "httpcore")


class _InterceptHandler(logging.Handler):
    """Transmet les enregistrements du module logging à loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(
    log_level: str = "INFO",
    log_file: Path = Path("logs/cinereco.log"),
    rotation_size: str = "10 MB",
    retention_count: int = 5,
    http_log_level: str = "WARNING",
) -> None:
    """Configure le logging de l'application.

    Args :
        log_level : Niveau de log minimum pour la sortie console (DEBUG, INFO, WARNING, ERROR)
        log_file : Chemin vers le fichier de log
        rotation_size : Taille maximale du fichier avant rotation (ex: "10 MB", "1 GB")
        retention_count : Nombre de fichiers rotatifs à conserver
        http_log_level : Niveau minimum des logs httpx/httpcore redirigés
    """
    logger.remove()

    # Console - lisible par l'humain
    logger.add(
        sys.stderr,
        level=log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    # Fichier - JSON avec rotation
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level="DEBUG",
        format="{message}",
        serialize=True,
        rotation=rotation_size,
        retention=retention_count,
        compression="zip",
        enqueue=True,  # Thread-safe
    )

    handler = _InterceptHandler()
    for name in _HTTP_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.setLevel(http_log_level)
        std_logger.propagate = False

    logger.debug("Logging configuré", log_file=str(log_file), rotation=rotation_size)


def configure_from_settings(settings) -> None:
    """Configure le logging à partir d'un objet Settings."""
    configure_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        rotation_size=settings.log_rotation_size,
        retention_count=settings.log_retention_count,
    )
