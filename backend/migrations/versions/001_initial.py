"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates the QuizHub tables:
- questions: The multiple-choice question bank
- test_results: Completed attempts with answers and a question snapshot

Also creates indexes for the listing queries (by subject, by user,
newest first).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Questions Table ───────────────────────────────────────
    op.create_table(
        'questions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('options', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('correct_answer', sa.Integer(), nullable=False),
        sa.Column('difficulty', sa.Text(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('created_by', sa.String(128), nullable=True),
    )

    op.create_index('ix_questions_subject', 'questions', ['subject'])
    op.create_index('ix_questions_created_at', 'questions', ['created_at'])

    # ── Test Results Table ────────────────────────────────────
    op.create_table(
        'test_results',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('test_id', sa.Text(), nullable=False),
        sa.Column('test_title', sa.Text(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('correct_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('answers', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('time_spent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('questions_snapshot', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
    )

    op.create_index('ix_test_results_user_id', 'test_results', ['user_id'])
    op.create_index('ix_test_results_completed_at', 'test_results', ['completed_at'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('ix_test_results_completed_at', table_name='test_results')
    op.drop_index('ix_test_results_user_id', table_name='test_results')
    op.drop_table('test_results')
    op.drop_index('ix_questions_created_at', table_name='questions')
    op.drop_index('ix_questions_subject', table_name='questions')
    op.drop_table('questions')
