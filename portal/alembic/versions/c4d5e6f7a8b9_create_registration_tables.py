"""create registration tables

Revision ID: c4d5e6f7a8b9
Revises:
Create Date: 2026-03-02

"""
import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = 'c4d5e6f7a8b9'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PENDING_SQL = "status IN ('pending_year_leader', 'pending_finance', 'pending_registrar')"

user_role = postgresql.ENUM(
    'student', 'year_leader', 'finance_officer', 'registrar', 'system_admin',
    name='user_role', create_type=False,
)
submission_status = postgresql.ENUM(
    'pending_year_leader', 'pending_finance', 'pending_registrar', 'approved', 'rejected',
    name='submissionstatus', create_type=False,
)
approval_action = postgresql.ENUM(
    'submitted', 'approved', 'rejected', name='approvalaction', create_type=False,
)
notification_severity = postgresql.ENUM(
    'info', 'success', 'warning', 'error', name='notificationseverity', create_type=False,
)


def _uuid_pk():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def upgrade() -> None:
    # Shared enum types are created once up front; tables reference them
    bind = op.get_bind()
    for enum_type in (user_role, submission_status, approval_action, notification_severity):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'faculties',
        _uuid_pk(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_faculties_name', 'faculties', ['name'])
    op.create_index('ix_faculties_code', 'faculties', ['code'], unique=True)

    op.create_table(
        'programs',
        _uuid_pk(),
        sa.Column('faculty_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('faculties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('code', sa.String(20), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_programs_faculty_id', 'programs', ['faculty_id'])

    op.create_table(
        'users',
        _uuid_pk(),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(150), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=True),
        sa.Column('role', user_role, nullable=False, server_default='student'),
        sa.Column('faculty_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('faculties.id', ondelete='SET NULL'), nullable=True),
        sa.Column('program_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('programs.id', ondelete='SET NULL'), nullable=True),
        sa.Column('student_number', sa.String(20), nullable=True, unique=True),
        sa.Column('current_year', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_faculty_id', 'users', ['faculty_id'])
    op.create_index('ix_users_program_id', 'users', ['program_id'])

    op.create_table(
        'submissions',
        _uuid_pk(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('faculty_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('faculties.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('program_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('programs.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('semester', sa.String(50), nullable=False),
        sa.Column('academic_year', sa.String(50), nullable=False),
        sa.Column('year_level', sa.Integer(), nullable=False),
        sa.Column('enrollment_intake', sa.String(50), nullable=True),
        sa.Column('modules', sa.JSON(), nullable=False),
        sa.Column('status', submission_status, nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_submissions_student_id', 'submissions', ['student_id'])
    op.create_index('ix_submissions_faculty_id', 'submissions', ['faculty_id'])
    op.create_index('ix_submissions_status', 'submissions', ['status'])
    op.create_index('ix_submission_faculty_status', 'submissions', ['faculty_id', 'status'])
    op.create_index(
        'ix_submission_student_period', 'submissions', ['student_id', 'semester', 'academic_year']
    )
    # At most one pending submission per student and period
    op.create_index(
        'uq_submission_active_period',
        'submissions',
        ['student_id', 'semester', 'academic_year'],
        unique=True,
        postgresql_where=sa.text(PENDING_SQL),
        sqlite_where=sa.text(PENDING_SQL),
    )

    op.create_table(
        'approval_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('submission_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('submissions.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('action', approval_action, nullable=False),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('from_status', submission_status, nullable=True),
        sa.Column('to_status', submission_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_approval_logs_submission_id', 'approval_logs', ['submission_id'])
    op.create_index(
        'ix_approval_log_submission_created', 'approval_logs', ['submission_id', 'created_at']
    )

    op.create_table(
        'registration_documents',
        _uuid_pk(),
        sa.Column('submission_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('submissions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('storage_key', sa.String(500), nullable=False, unique=True),
        sa.Column('file_size_bytes', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('uploaded_by', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        'ix_registration_documents_submission_id', 'registration_documents', ['submission_id']
    )

    op.create_table(
        'notifications',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('severity', notification_severity, nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notification_user_read', 'notifications', ['user_id', 'read'])

    system_settings = op.create_table(
        'system_settings',
        _uuid_pk(),
        sa.Column('current_academic_year', sa.String(50), nullable=False),
        sa.Column('current_session', sa.String(100), nullable=False),
        sa.Column('is_registration_open', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('updated_by', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    # Registration window defaults; reads never create this row
    op.bulk_insert(system_settings, [{
        'id': uuid.uuid4(),
        'current_academic_year': '2025/2026',
        'current_session': 'March - June',
        'is_registration_open': True,
    }])


def downgrade() -> None:
    op.drop_table('system_settings')
    op.drop_index('ix_notification_user_read', table_name='notifications')
    op.drop_index('ix_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_registration_documents_submission_id', table_name='registration_documents')
    op.drop_table('registration_documents')
    op.drop_index('ix_approval_log_submission_created', table_name='approval_logs')
    op.drop_index('ix_approval_logs_submission_id', table_name='approval_logs')
    op.drop_table('approval_logs')
    op.drop_index('uq_submission_active_period', table_name='submissions')
    op.drop_index('ix_submission_student_period', table_name='submissions')
    op.drop_index('ix_submission_faculty_status', table_name='submissions')
    op.drop_index('ix_submissions_status', table_name='submissions')
    op.drop_index('ix_submissions_faculty_id', table_name='submissions')
    op.drop_index('ix_submissions_student_id', table_name='submissions')
    op.drop_table('submissions')
    op.drop_index('ix_users_program_id', table_name='users')
    op.drop_index('ix_users_faculty_id', table_name='users')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_programs_faculty_id', table_name='programs')
    op.drop_table('programs')
    op.drop_index('ix_faculties_code', table_name='faculties')
    op.drop_index('ix_faculties_name', table_name='faculties')
    op.drop_table('faculties')

    bind = op.get_bind()
    for enum_type in (notification_severity, approval_action, submission_status, user_role):
        enum_type.drop(bind, checkfirst=True)
