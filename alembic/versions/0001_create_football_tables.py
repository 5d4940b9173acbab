"""Création des tables leagues, teams, matches et coaches

Revision ID: 0001
Revises:
Create Date: 2023-11-01 10:12:07

"""
from alembic import context, op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def _league_ondelete() -> str:
    """RESTRICT par défaut, CASCADE si league_delete_cascade est activée."""
    if context.config.get_main_option("league_delete_cascade") == "true":
        return 'CASCADE'
    return 'RESTRICT'


def upgrade() -> None:
    op.create_table(
        'leagues',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
    )
    op.create_index('ix_leagues_name', 'leagues', ['name'])

    op.create_table(
        'teams',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('league_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['league_id'], ['leagues.id'], name='fk_teams_league_id', ondelete=_league_ondelete()),
    )
    op.create_index('ix_teams_name', 'teams', ['name'])
    op.create_index('ix_teams_league_id', 'teams', ['league_id'])

    op.create_table(
        'matches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('home_team_id', sa.Integer(), nullable=False),
        sa.Column('away_team_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['home_team_id'], ['teams.id'], name='fk_matches_home_team_id', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['away_team_id'], ['teams.id'], name='fk_matches_away_team_id', ondelete='RESTRICT'),
    )
    op.create_index('ix_matches_home_team_id', 'matches', ['home_team_id'])
    op.create_index('ix_matches_away_team_id', 'matches', ['away_team_id'])
    op.create_index('ix_matches_home_away', 'matches', ['home_team_id', 'away_team_id'])

    op.create_table(
        'coaches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], name='fk_coaches_team_id', ondelete='SET NULL'),
        sa.UniqueConstraint('team_id', name='uq_coaches_team_id'),
    )
    op.create_index('ix_coaches_name', 'coaches', ['name'])


def downgrade() -> None:
    op.drop_index('ix_coaches_name', table_name='coaches')
    op.drop_table('coaches')

    op.drop_index('ix_matches_home_away', table_name='matches')
    op.drop_index('ix_matches_away_team_id', table_name='matches')
    op.drop_index('ix_matches_home_team_id', table_name='matches')
    op.drop_table('matches')

    op.drop_index('ix_teams_league_id', table_name='teams')
    op.drop_index('ix_teams_name', table_name='teams')
    op.drop_table('teams')

    op.drop_index('ix_leagues_name', table_name='leagues')
    op.drop_table('leagues')
