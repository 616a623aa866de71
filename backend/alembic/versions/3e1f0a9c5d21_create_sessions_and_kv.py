"""create sessions, session_splits, session_track, kv_entries

Revision ID: 3e1f0a9c5d21
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3e1f0a9c5d21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')


def upgrade() -> None:
    op.create_table(
        'sessions',
        sa.Column('seq', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('distance_m', sa.Float(), nullable=False),
        sa.Column('moving_time_sec', sa.Integer(), nullable=False),
        sa.Column('avg_pace_s_per_km', sa.Float(), nullable=False),
        sa.Column('elev_gain_m', sa.Float(), nullable=False),
        sa.Column('goal', _json(), nullable=True),
        sa.Column('created_at_ms', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('seq')
    )
    op.create_index('ix_sessions_id', 'sessions', ['id'], unique=True)
    op.create_index('ix_sessions_created_at_ms', 'sessions', ['created_at_ms'])

    op.create_table(
        'session_splits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(length=36), nullable=False),
        sa.Column('idx', sa.Integer(), nullable=False),
        sa.Column('duration_sec', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['sessions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_session_splits_id', 'session_splits', ['id'])
    op.create_index('ix_session_splits_session_id', 'session_splits', ['session_id'])

    op.create_table(
        'session_track',
        sa.Column('session_id', sa.String(length=36), nullable=False),
        sa.Column('points', _json(), nullable=False),
        sa.Column('bounds', _json(), nullable=True),
        sa.Column('points_count', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['sessions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('session_id')
    )

    op.create_table(
        'kv_entries',
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('value', _json(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('key')
    )


def downgrade() -> None:
    op.drop_table('kv_entries')
    op.drop_table('session_track')
    op.drop_index('ix_session_splits_session_id', table_name='session_splits')
    op.drop_index('ix_session_splits_id', table_name='session_splits')
    op.drop_table('session_splits')
    op.drop_index('ix_sessions_created_at_ms', table_name='sessions')
    op.drop_index('ix_sessions_id', table_name='sessions')
    op.drop_table('sessions')
