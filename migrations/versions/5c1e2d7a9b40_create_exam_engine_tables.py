"""create exam engine tables

Revision ID: 5c1e2d7a9b40
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c1e2d7a9b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'test_series',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('exam_plan_id', sa.Integer(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('correct_marks', sa.Float(), nullable=False),
        sa.Column('negative_marks', sa.Float(), nullable=False),
        sa.Column('passing_percentage', sa.Float(), nullable=False),
        sa.Column('instructions', sa.String(), nullable=True),
        sa.Column('is_free', sa.Boolean(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_test_series_id'), 'test_series', ['id'], unique=False)
    op.create_index(op.f('ix_test_series_title'), 'test_series', ['title'], unique=False)
    op.create_index(op.f('ix_test_series_exam_plan_id'), 'test_series', ['exam_plan_id'], unique=False)

    op.create_table(
        'questions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('question_text', sa.String(length=2000), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('right_answer', sa.String(), nullable=False),
        sa.Column('explanation', sa.String(length=2000), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_questions_id'), 'questions', ['id'], unique=False)

    op.create_table(
        'sections',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('test_series_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['test_series_id'], ['test_series.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('test_series_id', 'name', name='uq_sections_test_series_name')
    )
    op.create_index(op.f('ix_sections_id'), 'sections', ['id'], unique=False)
    op.create_index(op.f('ix_sections_test_series_id'), 'sections', ['test_series_id'], unique=False)

    op.create_table(
        'test_series_questions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('test_series_id', sa.Integer(), nullable=False),
        sa.Column('section_id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ),
        sa.ForeignKeyConstraint(['section_id'], ['sections.id'], ),
        sa.ForeignKeyConstraint(['test_series_id'], ['test_series.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('test_series_id', 'question_id', name='uq_test_series_questions_series_question')
    )
    op.create_index(op.f('ix_test_series_questions_id'), 'test_series_questions', ['id'], unique=False)
    op.create_index(op.f('ix_test_series_questions_test_series_id'), 'test_series_questions', ['test_series_id'], unique=False)
    op.create_index(op.f('ix_test_series_questions_section_id'), 'test_series_questions', ['section_id'], unique=False)
    op.create_index(op.f('ix_test_series_questions_question_id'), 'test_series_questions', ['question_id'], unique=False)

    op.create_table(
        'user_purchases',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('item_type', sa.Enum('EXAM_PLAN', 'TEST_SERIES', name='purchaseitemtypeenum'), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum('ACTIVE', 'EXPIRED', 'CANCELLED', name='purchasestatusenum'), nullable=False),
        sa.Column('purchase_date', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('expiry_date', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_purchases_id'), 'user_purchases', ['id'], unique=False)
    op.create_index(op.f('ix_user_purchases_user_id'), 'user_purchases', ['user_id'], unique=False)
    op.create_index('ix_user_purchases_user_item', 'user_purchases', ['user_id', 'item_type', 'item_id'], unique=False)

    op.create_table(
        'exam_attempts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('test_series_id', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('status', sa.Enum('STARTED', 'COMPLETED', name='attemptstatusenum'), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('max_score', sa.Float(), nullable=False),
        sa.Column('attempted_count', sa.Integer(), nullable=True),
        sa.Column('correct_count', sa.Integer(), nullable=True),
        sa.Column('wrong_count', sa.Integer(), nullable=True),
        sa.Column('skipped_count', sa.Integer(), nullable=True),
        sa.Column('marked_for_review_count', sa.Integer(), nullable=True),
        sa.Column('total_score', sa.Float(), nullable=True),
        sa.Column('percentage', sa.Float(), nullable=True),
        sa.Column('rank', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['test_series_id'], ['test_series.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_exam_attempts_id'), 'exam_attempts', ['id'], unique=False)
    op.create_index(op.f('ix_exam_attempts_user_id'), 'exam_attempts', ['user_id'], unique=False)
    op.create_index(op.f('ix_exam_attempts_test_series_id'), 'exam_attempts', ['test_series_id'], unique=False)
    op.create_index('ix_exam_attempts_status_end_time', 'exam_attempts', ['status', 'end_time'], unique=False)
    op.create_index('ix_exam_attempts_series_score', 'exam_attempts', ['test_series_id', 'total_score'], unique=False)
    op.create_index(
        'uq_exam_attempts_one_started',
        'exam_attempts',
        ['user_id', 'test_series_id'],
        unique=True,
        postgresql_where=sa.text("status = 'STARTED'"),
        sqlite_where=sa.text("status = 'STARTED'")
    )

    op.create_table(
        'attempt_section_timings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('attempt_id', sa.Integer(), nullable=False),
        sa.Column('section_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('total_time_spent', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['attempt_id'], ['exam_attempts.id'], ),
        sa.ForeignKeyConstraint(['section_id'], ['sections.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_attempt_section_timings_id'), 'attempt_section_timings', ['id'], unique=False)
    op.create_index(op.f('ix_attempt_section_timings_attempt_id'), 'attempt_section_timings', ['attempt_id'], unique=False)

    op.create_table(
        'attempt_questions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('attempt_id', sa.Integer(), nullable=False),
        sa.Column('section_id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('user_answer', sa.String(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=True),
        sa.Column('status', sa.Enum('UNATTEMPTED', 'ATTEMPTED', 'SKIPPED', name='attemptquestionstatusenum'), nullable=False),
        sa.Column('is_marked_for_review', sa.Boolean(), nullable=False),
        sa.Column('visit_count', sa.Integer(), nullable=False),
        sa.Column('time_spent', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['attempt_id'], ['exam_attempts.id'], ),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ),
        sa.ForeignKeyConstraint(['section_id'], ['sections.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('attempt_id', 'question_id', name='uq_attempt_questions_attempt_question')
    )
    op.create_index(op.f('ix_attempt_questions_id'), 'attempt_questions', ['id'], unique=False)
    op.create_index(op.f('ix_attempt_questions_attempt_id'), 'attempt_questions', ['attempt_id'], unique=False)
    op.create_index(op.f('ix_attempt_questions_section_id'), 'attempt_questions', ['section_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_attempt_questions_section_id'), table_name='attempt_questions')
    op.drop_index(op.f('ix_attempt_questions_attempt_id'), table_name='attempt_questions')
    op.drop_index(op.f('ix_attempt_questions_id'), table_name='attempt_questions')
    op.drop_table('attempt_questions')
    op.drop_index(op.f('ix_attempt_section_timings_attempt_id'), table_name='attempt_section_timings')
    op.drop_index(op.f('ix_attempt_section_timings_id'), table_name='attempt_section_timings')
    op.drop_table('attempt_section_timings')
    op.drop_index('uq_exam_attempts_one_started', table_name='exam_attempts')
    op.drop_index('ix_exam_attempts_series_score', table_name='exam_attempts')
    op.drop_index('ix_exam_attempts_status_end_time', table_name='exam_attempts')
    op.drop_index(op.f('ix_exam_attempts_test_series_id'), table_name='exam_attempts')
    op.drop_index(op.f('ix_exam_attempts_user_id'), table_name='exam_attempts')
    op.drop_index(op.f('ix_exam_attempts_id'), table_name='exam_attempts')
    op.drop_table('exam_attempts')
    op.drop_index('ix_user_purchases_user_item', table_name='user_purchases')
    op.drop_index(op.f('ix_user_purchases_user_id'), table_name='user_purchases')
    op.drop_index(op.f('ix_user_purchases_id'), table_name='user_purchases')
    op.drop_table('user_purchases')
    op.drop_index(op.f('ix_test_series_questions_question_id'), table_name='test_series_questions')
    op.drop_index(op.f('ix_test_series_questions_section_id'), table_name='test_series_questions')
    op.drop_index(op.f('ix_test_series_questions_test_series_id'), table_name='test_series_questions')
    op.drop_index(op.f('ix_test_series_questions_id'), table_name='test_series_questions')
    op.drop_table('test_series_questions')
    op.drop_index(op.f('ix_sections_test_series_id'), table_name='sections')
    op.drop_index(op.f('ix_sections_id'), table_name='sections')
    op.drop_table('sections')
    op.drop_index(op.f('ix_questions_id'), table_name='questions')
    op.drop_table('questions')
    op.drop_index(op.f('ix_test_series_exam_plan_id'), table_name='test_series')
    op.drop_index(op.f('ix_test_series_title'), table_name='test_series')
    op.drop_index(op.f('ix_test_series_id'), table_name='test_series')
    op.drop_table('test_series')
    sa.Enum(name='attemptquestionstatusenum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='attemptstatusenum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='purchasestatusenum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='purchaseitemtypeenum').drop(op.get_bind(), checkfirst=True)
