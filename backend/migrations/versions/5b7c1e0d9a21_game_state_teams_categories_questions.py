"""game_state, team, category and question tables

Revision ID: 5b7c1e0d9a21
Revises:
Create Date: 2026-01-12 10:00:00.000000

"""
from alembic import op
from flask import current_app
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b7c1e0d9a21'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if 'game_state' not in existing_tables:
        op.create_table(
            'game_state',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('current_round', sa.String(length=32), nullable=False, server_default='Easy'),
            sa.Column('current_team_id', sa.Integer(), nullable=True),
            sa.Column('current_category_id', sa.Integer(), nullable=True),
            sa.Column('current_question_id', sa.Integer(), nullable=True),
            sa.Column('show_answer', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('is_spinning', sa.Boolean(), nullable=False, server_default=sa.false()),
        )
        # The singleton session row, under the id the app is configured to use
        session_id = int(current_app.config.get('SESSION_ID', 1))
        op.execute(
            sa.text("INSERT INTO game_state (id, current_round) VALUES (:id, 'Easy')").bindparams(id=session_id)
        )

    if 'team' not in existing_tables:
        op.create_table(
            'team',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        )

    if 'category' not in existing_tables:
        op.create_table(
            'category',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=False),
        )

    if 'question' not in existing_tables:
        op.create_table(
            'question',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('category_id', sa.Integer(), nullable=False),
            sa.Column('difficulty', sa.String(length=32), nullable=False, server_default='Easy'),
            sa.Column('question_text', sa.Text(), nullable=False),
            sa.Column('answer_text', sa.Text(), nullable=True),
            sa.Column('option_a', sa.Text(), nullable=True),
            sa.Column('option_b', sa.Text(), nullable=True),
            sa.Column('option_c', sa.Text(), nullable=True),
            sa.Column('option_d', sa.Text(), nullable=True),
            sa.Column('correct_option', sa.String(length=1), nullable=True),
            sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        )
        op.create_index('ix_question_category_id', 'question', ['category_id'])
        op.create_index('ix_question_difficulty', 'question', ['difficulty'])
        op.create_index('ix_question_is_used', 'question', ['is_used'])


def downgrade():
    op.drop_index('ix_question_is_used', table_name='question')
    op.drop_index('ix_question_difficulty', table_name='question')
    op.drop_index('ix_question_category_id', table_name='question')
    op.drop_table('question')
    op.drop_table('category')
    op.drop_table('team')
    op.drop_table('game_state')
