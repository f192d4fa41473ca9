"""
Configuration du logging de ReelRack via loguru.

Deux sorties, configurees depuis Settings :
- Console (stderr) : lisible, coloree, niveau REELRACK_LOG_LEVEL
- Fichier : JSON avec rotation, niveau DEBUG (instantanes et envois compris)

Les bibliotheques qui passent par le module logging standard (uvicorn, httpx)
sont redirigees vers loguru pour que l'API web et les appels distants
arrivent dans les memes fichiers.
"""

import logging
import sys

from loguru import logger

from .config import Settings

# Loggers standard redirigees vers loguru, avec leur niveau minimum
STDLIB_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.INFO,
    # une ligne INFO par requete de polling : trop bavard
    "httpx": logging.WARNING,
}

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[backend]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Transmet les enregistrements du module logging a loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Remonte au-dela des frames du module logging pour garder l'appelant reel
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _intercept_stdlib() -> None:
    handler = InterceptHandler()
    for name, level in STDLIB_LOGGERS.items():
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [handler]
        stdlib_logger.setLevel(level)
        stdlib_logger.propagate = False


def configure_logging(settings: Settings) -> None:
    """
    Configure le logging de l'application.

    Remplace les handlers existants : peut etre appele plusieurs fois
    (tests, rechargement du serveur). Chaque enregistrement porte le backend
    actif dans extra["backend"].

    Args :
        settings : Configuration (log_level, log_file, log_rotation_size,
            log_retention_count, backend)
    """
    logger.remove()
    logger.configure(extra={"backend": settings.backend})

    logger.add(sys.stderr, level=settings.log_level, format=CONSOLE_FORMAT, colorize=True)

    log_file = settings.log_file
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level="DEBUG",
        format="{message}",
        serialize=True,
        rotation=settings.log_rotation_size,
        retention=settings.log_retention_count,
        compression="zip",
        enqueue=True,  # ecritures depuis l'executor SQLite
    )

    _intercept_stdlib()
    logger.debug(
        "Logging configure",
        log_file=str(log_file),
        rotation=settings.log_rotation_size,
    )
