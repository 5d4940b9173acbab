"""Vérification de l'état de santé de la base de données."""
import logging
import time
from typing import Any, Dict

from sqlalchemy import text

from football_league.db.connection import Database

logger = logging.getLogger(__name__)

async def check_database(database: Database) -> Dict[str, Any]:
    """
    Vérifie la connexion à la base de données.

    Args:
        database: Base de données à vérifier

    Returns:
        État de santé de la base de données
    """
    start_time = time.time()
    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        return {
            "status": "healthy",
            "response_time_ms": round((time.time() - start_time) * 1000, 2)
        }
    except Exception as e:
        logger.error(f"Erreur lors de la vérification de la base de données: {str(e)}")
        return {
            "status": "unhealthy",
            "error": str(e),
            "response_time_ms": round((time.time() - start_time) * 1000, 2)
        }
