"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

Creates all database tables for MyanEdu:
- students: accounts with unique login phone and bcrypt digest
- courses / batches: the catalog
- enrollments: one row per (student, batch), unique
- payments: payment attempts with receipt reference and review status
- notifications: structured student notifications
- lessons / comments: lesson videos and their discussion threads
- exam_results: graded exams per enrollment
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
    # ── Students Table ────────────────────────────────────────
    op.create_table(
        'students',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone_primary', sa.String(50), nullable=False, unique=True),
        sa.Column('phone_secondary', sa.String(50), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('profile_image', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    # ── Catalog ───────────────────────────────────────────────
    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_table(
        'batches',
        sa.Column('id', sa.String(50), primary_key=True),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('batch_name', sa.String(255), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('fees', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('max_students', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    # ── Enrollments Table ─────────────────────────────────────
    op.create_table(
        'enrollments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.String(36),
                  sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('batch_id', sa.String(50), sa.ForeignKey('batches.id'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('joined_at', sa.Date(), nullable=False, server_default=sa.func.current_date()),
        sa.Column('expire_date', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('student_id', 'batch_id', name='uq_enrollments_student_batch'),
    )
    op.create_index('ix_enrollments_student_id', 'enrollments', ['student_id'])

    # ── Payments Table ────────────────────────────────────────
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('enrollment_id', sa.Integer(),
                  sa.ForeignKey('enrollments.id', ondelete='CASCADE'), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('transaction_id', sa.String(100), nullable=True),
        sa.Column('receipt_image', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('payment_date', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_enrollment_id', 'payments', ['enrollment_id'])

    # ── Notifications Table ───────────────────────────────────
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.String(36),
                  sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(20), nullable=False, server_default='info'),
        sa.Column('template_key', sa.String(50), nullable=False),
        sa.Column('params', sa.Text(), nullable=False, server_default='{}'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_notifications_student_id', 'notifications', ['student_id'])

    # ── Lessons & Comments ────────────────────────────────────
    op.create_table(
        'lessons',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('batch_id', sa.String(50), sa.ForeignKey('batches.id'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('video_url', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_lessons_batch_id', 'lessons', ['batch_id'])

    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('lesson_id', sa.Integer(),
                  sa.ForeignKey('lessons.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_name', sa.String(255), nullable=False),
        sa.Column('user_role', sa.String(20), nullable=False, server_default='student'),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_comments_lesson_id', 'comments', ['lesson_id'])

    # ── Exam Results Table ────────────────────────────────────
    op.create_table(
        'exam_results',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('enrollment_id', sa.Integer(),
                  sa.ForeignKey('enrollments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('exam_title', sa.String(255), nullable=False),
        sa.Column('marks_obtained', sa.Integer(), nullable=False),
        sa.Column('total_marks', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('grade', sa.String(10), nullable=True),
        sa.Column('result_date', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table('exam_results')
    op.drop_index('ix_comments_lesson_id', table_name='comments')
    op.drop_table('comments')
    op.drop_index('ix_lessons_batch_id', table_name='lessons')
    op.drop_table('lessons')
    op.drop_index('ix_notifications_student_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_payments_enrollment_id', table_name='payments')
    op.drop_index('ix_payments_status', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_enrollments_student_id', table_name='enrollments')
    op.drop_table('enrollments')
    op.drop_table('batches')
    op.drop_table('courses')
    op.drop_table('students')
