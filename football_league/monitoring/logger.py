"""Service de journalisation structurée."""
import sys
import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Optional

from football_league.config import settings

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

class StructuredFormatter(logging.Formatter):
    """Formatteur pour journalisation structurée en JSON."""

    def __init__(self, fmt=None, datefmt=None, style='%', service_name="football-league"):
        super().__init__(fmt, datefmt, style)
        self.service_name = service_name

    def format(self, record):
        """
        Formate l'enregistrement en JSON structuré.

        Args:
            record: Enregistrement à formater

        Returns:
            Chaîne JSON formatée
        """
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": self.service_name,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        # Ajouter les exceptions si présentes
        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        # Ajouter les attributs supplémentaires
        if hasattr(record, "extras") and record.extras:
            log_data.update(record.extras)

        return json.dumps(log_data, default=str)

def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return StructuredFormatter(service_name=settings.APP_NAME)
    return logging.Formatter(TEXT_FORMAT)

def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None, sql_echo: Optional[bool] = None):
    """
    Configure la journalisation.

    Args:
        level: Niveau de journalisation (None = settings.LOG_LEVEL)
        log_format: "json" ou "text" (None = settings.LOG_FORMAT)
        sql_echo: Journalise les commandes SQL et leurs paramètres (None = settings.DB_ECHO)
    """
    level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    formatter = _build_formatter(log_format or settings.LOG_FORMAT)

    # Les logs vont sur stderr, stdout est réservé aux résultats des démonstrations
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    # Configurer la journalisation racine
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []  # Supprimer les handlers existants
    root_logger.addHandler(handler)

    # Configurer un handler de fichier si nécessaire
    if settings.LOG_FILE:
        file_handler = logging.FileHandler(settings.LOG_FILE)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Commandes SQL exécutées (paramètres compris)
    if sql_echo is None:
        sql_echo = settings.DB_ECHO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if sql_echo else logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

class StructuredLogger:
    """Logger avec support pour la journalisation structurée."""

    def __init__(self, name):
        self.logger = logging.getLogger(name)

    def _log(self, level, msg, *args, **kwargs):
        extras = kwargs.pop("extras", {})
        if extras:
            kwargs["extra"] = {"extras": extras}
        self.logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, **kwargs):
        """Journalise un message de niveau DEBUG."""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        """Journalise un message de niveau INFO."""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        """Journalise un message de niveau WARNING."""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        """Journalise un message de niveau ERROR."""
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg, *args, **kwargs):
        """Journalise une exception avec traceback."""
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, *args, **kwargs)

def get_logger(name):
    """
    Récupère un logger structuré.

    Args:
        name: Nom du logger

    Returns:
        Instance de StructuredLogger
    """
    return StructuredLogger(name)
