"""add_gamification_engine_tables

Revision ID: 001_gamification_engine
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_gamification_engine'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Achievement definitions (admin-authored catalog)
    op.create_table(
        'achievement_definitions',
        sa.Column('id', sa.String(length=100), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('criterion_type', sa.String(length=50), nullable=False),
        sa.Column('criterion_count', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('tier', sa.String(length=20), nullable=False, server_default='bronze'),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('rarity', sa.String(length=50), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_achievement_status', 'achievement_definitions', ['status'])
    op.create_index('ix_achievement_criterion', 'achievement_definitions', ['criterion_type'])

    # One profile per user, written only through version-checked updates
    op.create_table(
        'user_gamification_profiles',
        sa.Column('user_id', sa.String(length=128), primary_key=True),
        sa.Column('xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('quizzes_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('modules_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('activities_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('streak_count', sa.Integer(), nullable=True),
        sa.Column('streak_last_active_day', sa.Date(), nullable=True),
        sa.Column('unlocked', sa.JSON(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('user_gamification_profiles')
    op.drop_index('ix_achievement_criterion', table_name='achievement_definitions')
    op.drop_index('ix_achievement_status', table_name='achievement_definitions')
    op.drop_table('achievement_definitions')
