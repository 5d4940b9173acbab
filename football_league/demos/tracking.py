"""Démonstration du suivi et de l'absence de suivi des entités."""
import logging
from typing import Dict, List

from football_league.db.context import FootballLeagueContext
from football_league.models import Team

logger = logging.getLogger(__name__)


def print_entries(context: FootballLeagueContext, label: str) -> List[str]:
    lines = [str(entry) for entry in context.entries()]
    print(f"{label}:")
    for line in lines:
        print(f"  {line}")
    return lines


async def tracking_vs_no_tracking(
    context: FootballLeagueContext,
    tracked_id: int = 2,
    untracked_id: int = 8,
    tracked_name: str = "AC Milan 1899",
    untracked_name: str = "Rivoli United"
) -> Dict[str, List[str]]:
    """
    Compare une entité chargée avec suivi et une entité chargée sans suivi.

    Sans suivi, la modification est ignorée par save_changes() jusqu'à ce
    que l'entité soit attachée avec update(). Utile pour les lectures en
    masse où rien n'est modifié.
    """
    with_tracking = await context.teams.where(Team.c.id == tracked_id).first_or_default()
    with_no_tracking = await context.teams.as_no_tracking().where(Team.c.id == untracked_id).first_or_default()
    if with_tracking is None or with_no_tracking is None:
        logger.warning(f"Équipes {tracked_id} et {untracked_id} introuvables")
        print(f"Équipes {tracked_id} et {untracked_id} requises")
        return {}

    with_tracking.name = tracked_name
    with_no_tracking.name = untracked_name

    snapshots = {"before_first_save": print_entries(context, "Avant le premier enregistrement")}
    await context.save_changes()
    snapshots["after_first_save"] = print_entries(context, "Après le premier enregistrement")

    # L'entité non suivie est attachée: elle sera entièrement réécrite
    context.teams.update(with_no_tracking)
    snapshots["before_second_save"] = print_entries(context, "Avant le second enregistrement")
    await context.save_changes()
    snapshots["after_second_save"] = print_entries(context, "Après le second enregistrement")

    return snapshots
