"""Ajout de la fonction sp_get_team_coach (PostgreSQL)

Revision ID: 0002
Revises: 0001
Create Date: 2023-11-08 18:40:55

"""
from alembic import op

revision = '0002'
down_revision = '0001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    # SQLite n'a pas de procédures stockées
    if op.get_bind().dialect.name != 'postgresql':
        return

    op.execute(
        """
        CREATE OR REPLACE FUNCTION sp_get_team_coach(p_team_id INTEGER)
        RETURNS SETOF coaches
        LANGUAGE sql STABLE
        AS $$
            SELECT * FROM coaches WHERE team_id = p_team_id;
        $$;
        """
    )


def downgrade() -> None:
    if op.get_bind().dialect.name != 'postgresql':
        return

    op.execute("DROP FUNCTION IF EXISTS sp_get_team_coach(INTEGER);")
