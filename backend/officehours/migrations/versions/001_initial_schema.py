"""Create users, courses, enrollments, queues, questions and error_logs.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-09-14
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


ROLE = sa.Enum('student', 'ta', 'professor', name='role')
QUESTION_TYPE = sa.Enum(
    'Bug', 'Clarification', 'Concept', 'Other', 'Setup', 'Testing', name='questiontype',
)
SEVERITY = sa.Enum('INFO', 'WARNING', 'ERROR', 'CRITICAL', name='errorseverity')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('photo_url', sa.String(500), nullable=True),
        sa.Column('insights', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('section_group_name', sa.String(100), nullable=True),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'user_courses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('role', ROLE, nullable=False),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_user_course'),
    )
    op.create_index('ix_user_courses_user_id', 'user_courses', ['user_id'])
    op.create_index('ix_user_courses_course_id', 'user_courses', ['course_id'])

    op.create_table(
        'queues',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('room', sa.String(100), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('allow_questions', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_professor_queue', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_queues_course_id', 'queues', ['course_id'])

    op.create_table(
        'questions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('queue_id', sa.Integer(), sa.ForeignKey('queues.id'), nullable=False),
        sa.Column('creator_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('ta_helped_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('question_type', QUESTION_TYPE, nullable=True),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('group_able', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('location', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('first_helped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('helped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_questions_queue_id', 'questions', ['queue_id'])
    op.create_index('ix_questions_creator_id', 'questions', ['creator_id'])
    op.create_index('ix_questions_question_type', 'questions', ['question_type'])
    op.create_index('ix_questions_status', 'questions', ['status'])
    op.create_index('ix_questions_created_at', 'questions', ['created_at'])

    op.create_table(
        'error_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('severity', SEVERITY, nullable=False),
        sa.Column('error_type', sa.String(200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('traceback', sa.Text(), nullable=True),
        sa.Column('module', sa.String(300), nullable=True),
        sa.Column('function_name', sa.String(200), nullable=True),
        sa.Column('line_number', sa.Integer(), nullable=True),
        sa.Column('course_id', sa.Integer(), nullable=True),
        sa.Column('insight_name', sa.String(100), nullable=True),
        sa.Column('request_method', sa.String(10), nullable=True),
        sa.Column('request_path', sa.String(500), nullable=True),
        sa.Column('status_code', sa.Integer(), nullable=True),
        sa.Column('response_time_ms', sa.Float(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_error_logs_course_id', 'error_logs', ['course_id'])
    op.create_index('ix_error_logs_insight_name', 'error_logs', ['insight_name'])


def downgrade() -> None:
    op.drop_table('error_logs')
    op.drop_table('questions')
    op.drop_table('queues')
    op.drop_table('user_courses')
    op.drop_table('courses')
    op.drop_table('users')
    SEVERITY.drop(op.get_bind(), checkfirst=True)
    QUESTION_TYPE.drop(op.get_bind(), checkfirst=True)
    ROLE.drop(op.get_bind(), checkfirst=True)
