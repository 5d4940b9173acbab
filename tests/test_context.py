"""Tests de l'unité de travail: suivi, attachement, enregistrement et conflits."""
import pytest

from football_league.db.tracking import EntityState
from football_league.exceptions import (
    ConcurrencyConflictError,
    IdentityConflictError,
    IdentityModifiedError,
    SessionClosedError,
)
from football_league.models import League, Team


class TestTrackedLoads:
    """Chargements avec suivi."""

    @pytest.mark.asyncio
    async def test_modification_is_saved(self, database, seeded):
        """Une entité suivie modifiée est écrite par save_changes."""
        team_id = seeded["roma"].id
        async with database.context() as context:
            team = await context.teams.find(team_id)
            team.name = "AS Roma 1927"
            assert await context.save_changes() == 1
            assert context.state_of(team) is EntityState.UNCHANGED

        async with database.context() as context:
            reloaded = await context.load_untracked(Team, team_id)
            assert reloaded.name == "AS Roma 1927"

    @pytest.mark.asyncio
    async def test_find_returns_tracked_instance(self, database, seeded):
        """Une même identité donne une seule instance dans un contexte."""
        async with database.context() as context:
            first = await context.teams.find(seeded["milan"].id)
            again = await context.teams.find(seeded["milan"].id)
            listed = await context.teams.filter_by(name="AC Milan").single()
            assert first is again
            assert first is listed

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self, database, seeded):
        async with database.context() as context:
            assert await context.teams.find(999) is None

    @pytest.mark.asyncio
    async def test_reload_keeps_pending_changes(self, database, seeded):
        """Une requête suivie ne remplace pas les valeurs modifiées en mémoire."""
        async with database.context() as context:
            team = await context.teams.find(seeded["juventus"].id)
            team.name = "Juventus FC"
            teams = await context.teams.order_by("id").to_list()
            assert teams[0] is team
            assert team.name == "Juventus FC"
            assert context.state_of(team) is EntityState.UNCHANGED
            assert str(context.entry(team)) == f"Team {{id: {team.id}}} Unchanged"
            assert f"Team {{id: {team.id}}} Modified" in [str(entry) for entry in context.entries()]

    @pytest.mark.asyncio
    async def test_nothing_to_save(self, database, seeded):
        async with database.context() as context:
            await context.teams.to_list()
            assert await context.save_changes() == 0


class TestUntrackedLoads:
    """Chargements sans suivi."""

    @pytest.mark.asyncio
    async def test_modification_is_ignored(self, database, seeded):
        """Une entité non suivie modifiée n'est pas enregistrée."""
        team_id = seeded["chelsea"].id
        async with database.context() as context:
            team = await context.teams.as_no_tracking().find(team_id)
            team.name = "Chelsea FC"
            assert context.state_of(team) is EntityState.DETACHED
            assert await context.save_changes() == 0

        async with database.context() as context:
            reloaded = await context.load_untracked(Team, team_id)
            assert reloaded.name == "Chelsea"

    @pytest.mark.asyncio
    async def test_untracked_queries_return_distinct_instances(self, database, seeded):
        async with database.context() as context:
            first = await context.load_untracked(Team, seeded["arsenal"].id)
            second = await context.load_untracked(Team, seeded["arsenal"].id)
            assert first is not second
            assert first.to_dict() == second.to_dict()
            assert len(context.tracker) == 0


class TestAttachForUpdate:
    """Attachement d'une entité pour mise à jour complète."""

    @pytest.mark.asyncio
    async def test_all_columns_are_overwritten(self, database, seeded):
        """Les colonnes de l'instance attachée remplacent toute la ligne."""
        team_id = seeded["roma"].id
        premier_id = seeded["premier"].id
        async with database.context() as context:
            team = Team(id=team_id, name="Andy United", league_id=premier_id)
            entry = context.teams.update(team)
            assert entry.state is EntityState.MODIFIED
            assert await context.save_changes() == 1
            assert context.state_of(team) is EntityState.UNCHANGED

        async with database.context() as context:
            reloaded = await context.load_untracked(Team, team_id)
            assert reloaded.name == "Andy United"
            assert reloaded.league_id == premier_id

    @pytest.mark.asyncio
    async def test_untracked_entity_can_be_attached(self, database, seeded):
        """Une entité chargée sans suivi puis attachée est enregistrée."""
        team_id = seeded["arsenal"].id
        async with database.context() as context:
            team = await context.load_untracked(Team, team_id)
            team.name = "Arsenal FC"
            context.update(team)
            assert [str(entry) for entry in context.entries()] == [f"Team {{id: {team_id}}} Modified"]
            await context.save_changes()

        async with database.context() as context:
            assert (await context.load_untracked(Team, team_id)).name == "Arsenal FC"

    @pytest.mark.asyncio
    async def test_update_without_id_adds(self, database, seeded):
        async with database.context() as context:
            team = Team(name="Napoli", league_id=seeded["serie_a"].id)
            assert context.update(team).state is EntityState.ADDED
            await context.save_changes()
            assert team.id is not None

    @pytest.mark.asyncio
    async def test_second_instance_with_same_identity_is_rejected(self, database, seeded):
        team_id = seeded["juventus"].id
        async with database.context() as context:
            await context.teams.find(team_id)
            with pytest.raises(IdentityConflictError):
                context.update(Team(id=team_id, name="Juventus", league_id=seeded["serie_a"].id))


class TestConcurrencyConflicts:
    """Mises à jour et suppressions sans ligne affectée."""

    @pytest.mark.asyncio
    async def test_update_of_missing_row(self, database, seeded):
        async with database.context() as context:
            team = Team(id=999, name="Ghost", league_id=seeded["serie_a"].id)
            context.update(team)
            with pytest.raises(ConcurrencyConflictError) as exc_info:
                await context.save_changes()

            assert exc_info.value.entity_type == "Team"
            assert exc_info.value.entity_id == 999
            assert exc_info.value.operation == "UPDATE"
            # L'état d'avant l'appel est conservé
            assert context.state_of(team) is EntityState.MODIFIED

    @pytest.mark.asyncio
    async def test_delete_of_row_deleted_elsewhere(self, database, seeded):
        async with database.unit_of_work() as context:
            empty = League(name="Ligue 1")
            context.add(empty)

        async with database.context() as first, database.context() as second:
            stale = await first.leagues.find(empty.id)
            doomed = await second.leagues.find(empty.id)
            second.remove(doomed)
            await second.save_changes()

            first.remove(stale)
            with pytest.raises(ConcurrencyConflictError) as exc_info:
                await first.save_changes()
            assert exc_info.value.operation == "DELETE"
            assert first.state_of(stale) is EntityState.DELETED

    @pytest.mark.asyncio
    async def test_failure_rolls_back_every_change(self, database, seeded):
        """Aucune écriture n'est conservée si une opération échoue."""
        async with database.context() as context:
            league = League(name="Eredivisie")
            context.add(league)
            juventus = await context.teams.find(seeded["juventus"].id)
            juventus.name = "Juve"
            context.update(Team(id=999, name="Ghost", league_id=seeded["serie_a"].id))

            with pytest.raises(ConcurrencyConflictError):
                await context.save_changes()

            assert league.id is None
            assert context.state_of(league) is EntityState.ADDED
            assert context.state_of(juventus) is EntityState.MODIFIED

        async with database.context() as context:
            assert await context.leagues.count() == 2
            assert (await context.load_untracked(Team, seeded["juventus"].id)).name == "Juventus"


class TestAddAndRemove:

    @pytest.mark.asyncio
    async def test_add_graph_inserts_principal_first(self, database):
        """La ligue atteinte par la navigation est insérée avant l'équipe."""
        async with database.context() as context:
            league = League(name="Bundesliga")
            team = Team(name="Bayern Munich", league=league)
            context.add(team)
            assert context.state_of(league) is EntityState.ADDED

            assert await context.save_changes() == 2
            assert team.league_id == league.id
            assert league.teams == [team]

    @pytest.mark.asyncio
    async def test_add_team_by_foreign_key_links_tracked_league(self, database):
        async with database.context() as context:
            league = League(name="Serie A")
            context.add(league)
            await context.save_changes()

            team = Team(name="Juventus", league_id=league.id)
            context.add(team)
            await context.save_changes()
            assert team.league is league
            assert league.teams == [team]

    @pytest.mark.asyncio
    async def test_remove_added_entity_detaches_it(self, database):
        async with database.context() as context:
            league = League(name="Ligue 1")
            context.add(league)
            context.remove(league)
            assert context.state_of(league) is EntityState.DETACHED
            assert await context.save_changes() == 0

    @pytest.mark.asyncio
    async def test_remove_unknown_entity_without_id(self, database):
        async with database.context() as context:
            with pytest.raises(ValueError):
                context.remove(League(name="Ligue 1"))

    @pytest.mark.asyncio
    async def test_remove_deletes_row(self, database, seeded):
        async with database.context() as context:
            coach = await context.coaches.first()
            context.coaches.remove(coach)
            assert await context.save_changes() == 1
            assert context.state_of(coach) is EntityState.DETACHED
            assert await context.coaches.count() == 0


class TestIdentityAndLifecycle:

    @pytest.mark.asyncio
    async def test_modified_identifier_is_rejected(self, database, seeded):
        async with database.context() as context:
            team = await context.teams.find(seeded["milan"].id)
            team.id = 999
            with pytest.raises(IdentityModifiedError):
                await context.save_changes()

    @pytest.mark.asyncio
    async def test_closed_context_rejects_use(self, database, seeded):
        async with database.context() as context:
            team = await context.teams.find(seeded["milan"].id)

        assert context.is_closed
        assert context.state_of(team) is EntityState.DETACHED
        with pytest.raises(SessionClosedError):
            await context.teams.to_list()
        with pytest.raises(SessionClosedError):
            await context.save_changes()

    @pytest.mark.asyncio
    async def test_unit_of_work_saves_on_exit(self, database):
        async with database.unit_of_work() as context:
            context.add(League(name="La Liga"))

        async with database.context() as context:
            assert await context.leagues.filter_by(name="La Liga").count() == 1

    @pytest.mark.asyncio
    async def test_unit_of_work_discards_on_error(self, database):
        with pytest.raises(RuntimeError):
            async with database.unit_of_work() as context:
                context.add(League(name="La Liga"))
                raise RuntimeError("abandon")

        assert context.is_closed
        async with database.context() as context:
            assert await context.leagues.count() == 0


class TestRanges:

    @pytest.mark.asyncio
    async def test_update_range(self, database, seeded):
        async with database.context() as context:
            teams = await context.teams.as_no_tracking().filter_by(league_id=seeded["premier"].id).to_list()
            for team in teams:
                team.name = team.name.upper()
            context.update_range(teams)
            assert await context.save_changes() == 2

        async with database.context() as context:
            names = [team.name for team in await context.teams.filter_by(league_id=seeded["premier"].id).to_list()]
            assert sorted(names) == ["ARSENAL", "CHELSEA"]

    @pytest.mark.asyncio
    async def test_add_and_remove_range_through_set(self, database):
        async with database.context() as context:
            leagues = context.set(League)
            new_leagues = [League(name="Ligue 1"), League(name="Eredivisie")]
            leagues.add_range(new_leagues)
            assert await context.save_changes() == 2

            leagues.remove_range(new_leagues)
            assert await context.save_changes() == 2
            assert await leagues.count() == 0

    @pytest.mark.asyncio
    async def test_as_tracking_restores_tracking(self, database, seeded):
        async with database.context() as context:
            team = await context.query(Team).as_no_tracking().as_tracking().find(seeded["roma"].id)
            assert context.state_of(team) is EntityState.UNCHANGED


@pytest.mark.asyncio
async def test_drop_and_recreate_schema(database, seeded):
    await database.drop_schema()
    await database.create_schema()
    async with database.context() as context:
        assert await context.leagues.count() == 0
