"""Démonstrations de lecture: sélections, filtres, agrégats et données liées."""
from typing import Any, Dict, List

from sqlalchemy import select

from football_league.db.context import FootballLeagueContext
from football_league.models import League, Team


async def simple_select_all_query(context: FootballLeagueContext) -> List[League]:
    # SELECT * FROM leagues, matérialisé en liste avant l'affichage:
    # la connexion n'est pas conservée pendant la boucle
    leagues = await context.leagues.to_list()
    for league in leagues:
        print(f"{league.id}: {league.name}")
    return leagues


async def query_filters(
    context: FootballLeagueContext,
    full_league_name: str = "Serie A",
    partial_league_name: str = "Premier"
) -> Dict[str, List[League]]:
    """Filtres d'égalité et de motif (LIKE exécuté par la base)."""
    exact_matches = await context.leagues.filter_by(name=full_league_name).to_list()
    for league in exact_matches:
        print(f"{league.id}: {league.name}")

    partial_matches = await context.leagues.like("name", f"%{partial_league_name}%").to_list()
    for league in partial_matches:
        print(f"{league.id}: {league.name}")

    return {"exact": exact_matches, "partial": partial_matches}


async def additional_execution_methods(context: FootballLeagueContext, league_name: str = "Serie A") -> Dict[str, Any]:
    """
    Opérateurs d'exécution disponibles sur une requête.

    Args:
        context: Contexte de la base de données
        league_name: Ligue utilisée pour les opérateurs à résultat unique

    Returns:
        Résultats de chaque opérateur
    """
    leagues = context.leagues
    named = leagues.filter_by(name=league_name)

    results = {
        # Tous les éléments
        "list": await leagues.to_list(),
        # Éléments uniques
        "first": await leagues.order_by("id").first(),
        "first_or_default": await leagues.order_by("id").first_or_default(),
        "single": await named.single(),
        "single_or_default": await named.single_or_default(),
        # Agrégats
        "count": await leagues.count(),
        "long_count": await leagues.long_count(),
        "min": await leagues.min("name"),
        "max": await leagues.max("name"),
    }
    # Recherche par identifiant: l'entité ou None
    results["find"] = await leagues.find(results["first"].id)

    for name, value in results.items():
        if name == "list":
            print(f"{name}: {len(value)} ligue(s)")
        else:
            print(f"{name}: {value}")
    return results


async def alternative_query_syntax(context: FootballLeagueContext, fuzzy_team_name: str = "Mil") -> Dict[str, List[Team]]:
    """Les mêmes requêtes écrites directement avec select() de SQLAlchemy."""
    teams_table = Team.__table__

    all_teams = await context.from_statement(Team, select(teams_table))
    for team in all_teams:
        print(f"{team.id}: {team.name}")

    specific_team = await context.from_statement(Team, select(teams_table).where(teams_table.c.name == "Juventus"))
    for team in specific_team:
        print(f"{team.id}: {team.name}")

    fuzzy_team = await context.from_statement(
        Team, select(teams_table).where(teams_table.c.name.like(f"%{fuzzy_team_name}%"))
    )
    for team in fuzzy_team:
        print(f"{team.id}: {team.name}")

    return {"all": all_teams, "specific": specific_team, "fuzzy": fuzzy_team}


async def query_related_records(
    context: FootballLeagueContext,
    coach_team_id: int = 1,
    matches_team_id: int = 1
) -> Dict[str, Any]:
    """Chargement anticipé des données liées."""
    # Plusieurs entités liées: ligues -> équipes
    leagues = await context.leagues.include("teams").to_list()
    for league in leagues:
        print(f"{league.id}: {league.name} ({len(league.teams)} équipes)")

    # Une entité liée: équipe -> entraîneur
    team = await context.teams.include("coach").where(Team.c.id == coach_team_id).first_or_default()
    if team is not None:
        coach_name = team.coach.name if team.coach else "aucun"
        print(f"{team.id}: {team.name}, entraîneur: {coach_name}")

    # Petits-enfants: équipe -> matchs -> adversaire
    team_with_matches = await (
        context.teams
        .include("away_matches.home_team", "home_matches.away_team")
        .where(Team.c.id == matches_team_id)
        .first_or_default()
    )
    if team_with_matches is not None:
        for match in team_with_matches.home_matches:
            print(f"{team_with_matches.name} vs {match.away_team.name} le {match.date:%Y-%m-%d}")
        for match in team_with_matches.away_matches:
            print(f"{match.home_team.name} vs {team_with_matches.name} le {match.date:%Y-%m-%d}")

    # Inclusion avec filtre: équipes ayant joué à domicile
    teams = await context.teams.where_related("home_matches").include("coach").to_list()
    for home_team in teams:
        coach_name = home_team.coach.name if home_team.coach else "aucun"
        print(f"{home_team.id}: {home_team.name} (domicile), entraîneur: {coach_name}")

    return {
        "leagues": leagues,
        "team": team,
        "team_with_matches": team_with_matches,
        "teams": teams,
    }
