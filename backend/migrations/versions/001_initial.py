"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates all database tables for the Department Quiz Platform:
- classes, subjects: year groups and the subjects taught in them
- users: admins, teachers and students
- teacher_subjects, student_subjects: subject assignment and enrollment
- experiments, quizzes, questions: authored quiz content
- quiz_attempts: one attempt per (quiz, student)

Also seeds the default classes and creates indexes for common queries.
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
    # ── Classes & Subjects ────────────────────────────────────
    classes = op.create_table(
        'classes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(50), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    op.create_table(
        'subjects',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('class_id', sa.Integer(),
                  sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    # ── Users ─────────────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(100), nullable=True, unique=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('qualification', sa.String(100), nullable=True),
        sa.Column('class_id', sa.Integer(),
                  sa.ForeignKey('classes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('roll_number', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    # ── Assignments ───────────────────────────────────────────
    for table, user_column in (('teacher_subjects', 'teacher_id'),
                               ('student_subjects', 'student_id')):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(user_column, sa.Integer(),
                      sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('subject_id', sa.Integer(),
                      sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
            sa.UniqueConstraint(user_column, 'subject_id',
                                name='unique_{}'.format(table[:-1])),
        )

    # ── Experiments, Quizzes, Questions ───────────────────────
    op.create_table(
        'experiments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('subject_id', sa.Integer(),
                  sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('experiment_number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('subject_id', 'experiment_number', name='unique_experiment'),
    )

    op.create_table(
        'quizzes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('experiment_id', sa.Integer(),
                  sa.ForeignKey('experiments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.Integer(),
                  sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('total_marks', sa.Integer(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.Integer(),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    op.create_table(
        'questions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('quiz_id', sa.Integer(),
                  sa.ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(20), nullable=False, server_default='mcq'),
        sa.Column('marks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('options', sa.Text(), nullable=True),
        sa.Column('correct_answer', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_questions_quiz_id', 'questions', ['quiz_id'])

    # ── Quiz Attempts ─────────────────────────────────────────
    op.create_table(
        'quiz_attempts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('quiz_id', sa.Integer(),
                  sa.ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('started_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('percentage', sa.Numeric(precision=5, scale=2),
                  nullable=False, server_default='0'),
        sa.Column('answers', sa.Text(), nullable=True),
        sa.UniqueConstraint('quiz_id', 'student_id', name='unique_attempt'),
    )
    op.create_index('ix_quiz_attempts_student_id', 'quiz_attempts', ['student_id'])

    # Default year groups
    op.bulk_insert(classes, [{'name': 'SE'}, {'name': 'TE'}, {'name': 'BE'}])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_quiz_attempts_student_id', table_name='quiz_attempts')
    op.drop_table('quiz_attempts')
    op.drop_index('ix_questions_quiz_id', table_name='questions')
    op.drop_table('questions')
    op.drop_table('quizzes')
    op.drop_table('experiments')
    op.drop_table('student_subjects')
    op.drop_table('teacher_subjects')
    op.drop_table('users')
    op.drop_table('subjects')
    op.drop_table('classes')
