"""Démonstrations d'ajout, de mise à jour et de suppression."""
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from football_league.db.context import FootballLeagueContext
from football_league.exceptions import ConcurrencyConflictError
from football_league.models import Coach, League, Match, Team

logger = logging.getLogger(__name__)


# Ajouts simples

async def add_new_league(context: FootballLeagueContext) -> League:
    """Ajoute la Serie A puis trois équipes qui lui sont rattachées."""
    league = League(name="Serie A")
    context.leagues.add(league)
    await context.save_changes()

    # L'identifiant de la ligue est connu après l'enregistrement
    add_teams_with_league(context, league)
    await context.save_changes()

    print(f"{league.id}: {league.name} ({len(league.teams)} équipes)")
    return league


def add_teams_with_league(context: FootballLeagueContext, league: League) -> List[Team]:
    # Deux équipes par clé étrangère, une par navigation
    teams = [
        Team(name="Juventus", league_id=league.id),
        Team(name="AC Milan", league_id=league.id),
        Team(name="AS Roma", league=league),
    ]
    context.add_range(teams)
    return teams


# Relations un-à-plusieurs

async def add_new_teams_with_league(context: FootballLeagueContext) -> Team:
    """La ligue, encore inconnue en base, est insérée avec l'équipe."""
    league = League(name="Bundesliga")
    team = Team(name="Bayern Munich", league=league)
    context.add(team)
    await context.save_changes()

    print(f"{team.id}: {team.name} -> {league.id}: {league.name}")
    return team


async def add_new_team_with_league_id(context: FootballLeagueContext, league_id: int = 2) -> Team:
    team = Team(name="Borussia Dortmund", league_id=league_id)
    context.add(team)
    await context.save_changes()

    print(f"{team.id}: {team.name} (ligue {team.league_id})")
    return team


async def add_new_league_with_teams(context: FootballLeagueContext) -> League:
    teams = [
        Team(name="Arsenal"),
        Team(name="Chelsea"),
        Team(name="Manchester City"),
        Team(name="Manchester United"),
        Team(name="Crystal Palace"),
    ]
    league = League(name="Premier League", teams=teams)
    context.add(league)
    await context.save_changes()

    print(f"{league.id}: {league.name}")
    for team in league.teams:
        print(f"  {team.id}: {team.name}")
    return league


# Relations plusieurs-à-plusieurs (via Match)

async def add_new_matches(
    context: FootballLeagueContext,
    fixtures: Sequence[Tuple[int, int]] = ((1, 2), (3, 1), (2, 3))
) -> List[Match]:
    """
    Ajoute des matchs entre équipes existantes.

    Args:
        context: Contexte de la base de données
        fixtures: Couples (équipe à domicile, équipe à l'extérieur)
    """
    dates = [datetime.now(), datetime(2023, 11, 30), datetime.now()]
    matches = [
        Match(home_team_id=home, away_team_id=away, date=dates[index % len(dates)])
        for index, (home, away) in enumerate(fixtures)
    ]
    context.add_range(matches)
    await context.save_changes()

    for match in matches:
        print(f"{match.id}: {match.home_team_id} vs {match.away_team_id} le {match.date:%Y-%m-%d}")
    return matches


# Relations un-à-un

async def add_new_coach(context: FootballLeagueContext, team_id: int = 1) -> List[Coach]:
    coach_one = Coach(name="Ted Lasso", team_id=team_id)
    coach_two = Coach(name="Antonio Conte")
    context.add(coach_one)
    context.add(coach_two)
    await context.save_changes()

    for coach in (coach_one, coach_two):
        print(f"{coach.id}: {coach.name} (équipe {coach.team_id})")
    return [coach_one, coach_two]


# Mises à jour

async def simple_update_league_record(
    context: FootballLeagueContext,
    league_id: int = 3,
    name: str = "Scottish Premiership"
) -> Optional[League]:
    """Charge une ligue suivie, la modifie puis enregistre."""
    league = await context.leagues.find(league_id)
    if league is None:
        print(f"Ligue {league_id} introuvable")
        return None

    league.name = name
    await context.save_changes()

    # Relecture hors suivi pour vérifier la valeur en base
    updated = await context.load_untracked(League, league_id)
    print(f"{updated.id}: {updated.name}")
    return updated


async def simple_update_team_record(
    context: FootballLeagueContext,
    team_id: int = 3,
    name: str = "Andy United",
    league_id: int = 1
) -> Optional[Team]:
    """Mise à jour d'un enregistrement dont on connaît déjà toutes les valeurs."""
    team = Team(id=team_id, name=name, league_id=league_id)
    context.teams.update(team)
    try:
        await context.save_changes()
    except ConcurrencyConflictError as e:
        # L'entité n'existe plus: on l'oublie plutôt que de la réessayer
        logger.warning(f"Équipe {team_id} absente, mise à jour abandonnée")
        context.tracker.detach(team)
        print(f"Mise à jour impossible: {e}")
        return None

    print(f"{team.id}: {team.name}")
    return team


# Suppressions

async def simple_delete(context: FootballLeagueContext, league_id: Optional[int] = None) -> bool:
    """
    Supprime une ligue sans équipe.

    Sans identifiant, une ligue vide est d'abord créée pour la démonstration.
    """
    if league_id is None:
        league = League(name="Ligue 1")
        context.add(league)
        await context.save_changes()
        league_id = league.id

    # Il faut d'abord charger l'entité à supprimer
    league_to_delete = await context.leagues.find(league_id)
    if league_to_delete is None:
        print(f"Ligue {league_id} introuvable")
        return False

    context.leagues.remove(league_to_delete)
    await context.save_changes()
    print(f"Ligue {league_id} supprimée")
    return True


async def delete_with_relationship(context: FootballLeagueContext, league_id: int = 2) -> bool:
    """
    Supprime une ligue qui a des équipes.

    Ne réussit que si la clé teams.league_id est en ON DELETE CASCADE;
    sinon l'erreur d'intégrité de la base remonte à l'appelant.
    """
    league_to_delete = await context.leagues.find(league_id)
    if league_to_delete is None:
        print(f"Ligue {league_id} introuvable")
        return False

    context.leagues.remove(league_to_delete)
    await context.save_changes()
    print(f"Ligue {league_id} et ses équipes supprimées")
    return True
