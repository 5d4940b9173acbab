"""
Point d'entrée de la console de démonstration.
"""
import argparse
import asyncio
import sys
from typing import List, Optional, Sequence

from football_league.config import settings
from football_league.db.connection import Database
from football_league.demos import DEFAULT_DEMOS, DEMOS
from football_league.monitoring.healthcheck import check_database
from football_league.monitoring.logger import configure_logging, get_logger

logger = get_logger(__name__)

async def run_demos(demo_names: Sequence[str], create_schema: bool = False, database: Optional[Database] = None) -> None:
    """
    Exécute les démonstrations, chacune dans sa propre unité de travail.

    Args:
        demo_names: Noms des démonstrations (clés de DEMOS)
        create_schema: Crée les tables absentes avant de commencer
        database: Base de données (None = configuration de l'application)
    """
    owns_database = database is None
    database = database or Database()
    try:
        health = await check_database(database)
        if health["status"] != "healthy":
            logger.warning(f"⚠️ Base de données indisponible: {health.get('error')}", extras=health)

        if create_schema:
            await database.create_schema()

        for name in demo_names:
            logger.info(f"▶️ Démonstration {name}", extras={"demo": name})
            print(f"--- {name} ---")
            async with database.context() as context:
                await DEMOS[name](context)
    finally:
        if owns_database:
            await database.dispose()

def wait_for_key() -> None:
    print("Appuyez sur Entrée pour terminer...")
    try:
        input()
    except EOFError:
        # Entrée standard fermée: rien à attendre
        pass

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="football-league",
        description=f"{settings.APP_NAME} - démonstrations d'accès aux données"
    )
    parser.add_argument('demos', nargs='*', metavar='DEMO',
                        help='Démonstrations à exécuter (par défaut: la séquence complète)')
    parser.add_argument('--list', action='store_true', help='Lister les démonstrations disponibles')
    parser.add_argument('--create-schema', action='store_true', help='Créer les tables absentes avant de commencer')
    parser.add_argument('--no-wait', action='store_true', help="Ne pas attendre l'appui sur une touche à la fin")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """Point d'entrée principal pour la console."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging()

    if args.list:
        for name in DEMOS:
            marker = "*" if name in DEFAULT_DEMOS else " "
            print(f"{marker} {name}")
        return 0

    unknown = [name for name in args.demos if name not in DEMOS]
    if unknown:
        parser.error(f"démonstration(s) inconnue(s): {', '.join(unknown)}")

    asyncio.run(run_demos(args.demos or DEFAULT_DEMOS, create_schema=args.create_schema))

    if not args.no_wait:
        wait_for_key()
    return 0

if __name__ == '__main__':
    sys.exit(main())
