"""create user, game and published_result tables

Revision ID: 4c7d1e9a2b10
Revises:
Create Date: 2025-12-01 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c7d1e9a2b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('role', sa.String(length=16), nullable=False, server_default='viewer'),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'game' not in existing_tables:
        op.create_table(
            'game',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('nick_name', sa.String(length=100), nullable=False),
            sa.Column('description', sa.String(length=500), nullable=True),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('result_time', sa.String(length=8), nullable=True),
            sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_game_is_active', 'game', ['is_active'])

    if 'published_result' not in existing_tables:
        op.create_table(
            'published_result',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
            sa.Column('game_day', sa.Date(), nullable=False),
            sa.Column('value', sa.String(length=16), nullable=False),
            sa.Column('published_at', sa.DateTime(), nullable=False),
            sa.Column('published_by_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            # One official result per game per game day; the publisher relies on it
            sa.UniqueConstraint('game_id', 'game_day', name='uq_published_result_game_day'),
        )
        op.create_index('ix_published_result_game_id', 'published_result', ['game_id'])
        op.create_index('ix_published_result_game_day', 'published_result', ['game_day'])


def downgrade():
    op.drop_index('ix_published_result_game_day', table_name='published_result')
    op.drop_index('ix_published_result_game_id', table_name='published_result')
    op.drop_table('published_result')
    op.drop_index('ix_game_is_active', table_name='game')
    op.drop_table('game')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
