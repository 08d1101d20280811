"""create runs, rsvps and leaderboard_users

Revision ID: 5e1f0c9a7b21
Revises: 
Create Date: 2025-08-27 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5e1f0c9a7b21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()

    if 'runs' not in tables:
        op.create_table(
            'runs',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('instant', sa.DateTime(timezone=True), nullable=False),
            sa.Column('display_time', sa.String(length=5), nullable=False),
            sa.Column('location', sa.String(), nullable=False),
            sa.Column('pace', sa.String(length=32), nullable=False),
            sa.Column('description', sa.Text(), nullable=False, server_default=''),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.func.now()),
        )
        op.create_index('ix_runs_instant', 'runs', ['instant'])

    if 'rsvps' not in tables:
        op.create_table(
            'rsvps',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('run_id', sa.String(length=36),
                      sa.ForeignKey('runs.id', ondelete='CASCADE'), nullable=False),
            sa.Column('first_name', sa.String(), nullable=False),
            sa.Column('last_name', sa.String(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=True),
            sa.Column('status', sa.String(length=3), nullable=False),
            sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        )
        op.create_index('ix_rsvps_run_id', 'rsvps', ['run_id'])
        op.create_index(
            'ux_rsvps_run_username',
            'rsvps',
            ['run_id', sa.text('lower(username)')],
            unique=True,
            postgresql_where=sa.text('username IS NOT NULL'),
            sqlite_where=sa.text('username IS NOT NULL'),
        )

    if 'leaderboard_users' not in tables:
        op.create_table(
            'leaderboard_users',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('first_name', sa.String(), nullable=False),
            sa.Column('last_name', sa.String(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=True),
            sa.Column('total_runs', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_miles', sa.Float(), nullable=False, server_default='0'),
            sa.Column('is_registered', sa.Boolean(), nullable=False,
                      server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.func.now()),
            sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.func.now()),
        )
        op.create_index(
            'ux_leaderboard_users_username',
            'leaderboard_users',
            [sa.text('lower(username)')],
            unique=True,
        )


def downgrade() -> None:
    # Safe drop if exists, children first
    op.execute('DROP TABLE IF EXISTS rsvps')
    op.execute('DROP TABLE IF EXISTS leaderboard_users')
    op.execute('DROP TABLE IF EXISTS runs')
