from football_league.demos.queries import (
    additional_execution_methods,
    alternative_query_syntax,
    query_filters,
    query_related_records,
    simple_select_all_query,
)
from football_league.demos.tracking import tracking_vs_no_tracking
from football_league.demos.writes import (
    add_new_coach,
    add_new_league,
    add_new_league_with_teams,
    add_new_matches,
    add_new_team_with_league_id,
    add_new_teams_with_league,
    delete_with_relationship,
    simple_delete,
    simple_update_league_record,
    simple_update_team_record,
)

# Toutes les démonstrations, dans l'ordre du tutoriel
DEMOS = {
    'add_new_league': add_new_league,
    'add_new_teams_with_league': add_new_teams_with_league,
    'add_new_team_with_league_id': add_new_team_with_league_id,
    'add_new_league_with_teams': add_new_league_with_teams,
    'simple_select_all_query': simple_select_all_query,
    'query_filters': query_filters,
    'additional_execution_methods': additional_execution_methods,
    'alternative_query_syntax': alternative_query_syntax,
    'simple_update_league_record': simple_update_league_record,
    'simple_update_team_record': simple_update_team_record,
    'tracking_vs_no_tracking': tracking_vs_no_tracking,
    'add_new_matches': add_new_matches,
    'add_new_coach': add_new_coach,
    'query_related_records': query_related_records,
    'simple_delete': simple_delete,
    'delete_with_relationship': delete_with_relationship,
}

# Séquence exécutable sur une base vide; delete_with_relationship échoue
# tant que la suppression en cascade n'est pas configurée
DEFAULT_DEMOS = [name for name in DEMOS if name != 'delete_with_relationship']


def get_demo(name: str):
    return DEMOS.get(name)


__all__ = ['DEMOS', 'DEFAULT_DEMOS', 'get_demo'] + list(DEMOS)
