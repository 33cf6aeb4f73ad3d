"""add score_submission table

Revision ID: 5c2a9e71b0d4
Revises: 
Create Date: 2026-10-19 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a9e71b0d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # db-reset may already have created the table
    if 'score_submission' in set(insp.get_table_names()):
        return

    op.create_table(
        'score_submission',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.String(length=64), nullable=False),
        sa.Column('play_code', sa.String(length=8), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('time_remaining', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('outcome', sa.String(length=16), nullable=False),
        sa.Column('nightmare', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_score_submission_game_id', 'score_submission', ['game_id'], unique=False)


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if 'score_submission' not in set(insp.get_table_names()):
        return
    op.drop_index('ix_score_submission_game_id', table_name='score_submission')
    op.drop_table('score_submission')
