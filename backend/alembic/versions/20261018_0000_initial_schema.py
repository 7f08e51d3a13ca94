"""initial_schema

Revision ID: 20261018_0000
Revises:
Create Date: 2026-10-18 00:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa

from placement.database_types import GUID, JSONList, StringList


revision = '20261018_0000'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'teachers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('country_code', sa.String(length=8), nullable=True),
        sa.Column('nationality', sa.String(length=100), nullable=True),
        sa.Column('wechat_id', sa.String(length=100), nullable=True),
        sa.Column('linkedin', sa.String(length=500), nullable=True),
        sa.Column('instagram', sa.String(length=500), nullable=True),
        sa.Column('years_experience', sa.Integer(), nullable=True),
        sa.Column('education', sa.String(length=255), nullable=True),
        sa.Column('teaching_experience', sa.Text(), nullable=True),
        sa.Column('professional_experience', sa.Text(), nullable=True),
        sa.Column('additional_info', sa.Text(), nullable=True),
        sa.Column('chinese_level', sa.String(length=20), nullable=True),
        sa.Column('subject_specialty', StringList(), nullable=False),
        sa.Column('preferred_location', StringList(), nullable=False),
        sa.Column('preferred_age_group', StringList(), nullable=False),
        sa.Column('cv_path', sa.String(length=500), nullable=True),
        sa.Column('headshot_photo_path', sa.String(length=500), nullable=True),
        sa.Column('intro_video_path', sa.String(length=500), nullable=True),
        sa.Column('has_paid', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('payment_id', sa.String(), nullable=True),
        sa.Column('payment_date', sa.DateTime(), nullable=True),
        sa.Column('detected_country', sa.String(length=2), nullable=True),
        sa.Column('detected_currency', sa.String(length=3), nullable=True),
        sa.Column('preferred_currency', sa.String(length=3), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_teachers_user_id'), 'teachers', ['user_id'], unique=True)
    op.create_index(op.f('ix_teachers_email'), 'teachers', ['email'], unique=False)
    op.create_index(op.f('ix_teachers_is_active'), 'teachers', ['is_active'], unique=False)

    op.create_table(
        'schools',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('province', sa.String(length=100), nullable=True),
        sa.Column('school_type', sa.String(length=100), nullable=True),
        sa.Column('salary_range', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('subjects', StringList(), nullable=False),
        sa.Column('age_groups', StringList(), nullable=False),
        sa.Column('experience_required', sa.Integer(), nullable=True),
        sa.Column('chinese_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('contact_name', sa.String(length=255), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=30), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_schools_city'), 'schools', ['city'], unique=False)
    op.create_index(op.f('ix_schools_is_active'), 'schools', ['is_active'], unique=False)

    op.create_table(
        'school_accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('school_name', sa.String(length=255), nullable=False),
        sa.Column('contact_name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('province', sa.String(length=100), nullable=True),
        sa.Column('school_type', sa.String(length=100), nullable=True),
        sa.Column('has_paid', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('payment_id', sa.String(), nullable=True),
        sa.Column('payment_date', sa.DateTime(), nullable=True),
        sa.Column('preferred_currency', sa.String(length=3), nullable=True),
        sa.Column('max_jobs', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_school_accounts_user_id'), 'school_accounts', ['user_id'], unique=True)

    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('school_account_id', sa.Integer(), nullable=True),
        sa.Column('source', sa.String(length=20), nullable=False, server_default='admin'),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('role_type', sa.String(length=50), nullable=True),
        sa.Column('external_url', sa.String(length=1000), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('province', sa.String(length=100), nullable=True),
        sa.Column('subjects', StringList(), nullable=False),
        sa.Column('age_groups', StringList(), nullable=False),
        sa.Column('experience_required', sa.Integer(), nullable=True),
        sa.Column('chinese_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('qualification', sa.String(length=255), nullable=True),
        sa.Column('salary_min', sa.Integer(), nullable=True),
        sa.Column('salary_max', sa.Integer(), nullable=True),
        sa.Column('salary_display', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('key_responsibilities', sa.Text(), nullable=True),
        sa.Column('requirements', sa.Text(), nullable=True),
        sa.Column('benefits', sa.Text(), nullable=True),
        sa.Column('school_info', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('apply_by', sa.DateTime(), nullable=True),
        sa.Column('expiry_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['school_account_id'], ['school_accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_jobs_school_account_id'), 'jobs', ['school_account_id'], unique=False)
    op.create_index(op.f('ix_jobs_city'), 'jobs', ['city'], unique=False)
    op.create_index('idx_jobs_account_active', 'jobs', ['school_account_id', 'is_active'], unique=False)

    op.create_table(
        'matches',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('teacher_id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=True),
        sa.Column('job_id', sa.Integer(), nullable=True),
        sa.Column('match_score', sa.Integer(), nullable=False),
        sa.Column('match_reasons', JSONList(), nullable=False),
        sa.Column('score_breakdown', JSONList(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_matches_teacher', 'matches', ['teacher_id', 'match_score'], unique=False)
    op.create_index('idx_matches_job', 'matches', ['job_id', 'match_score'], unique=False)

    op.create_table(
        'applications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('teacher_id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=True),
        sa.Column('job_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('role_name', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('expiry_date', sa.DateTime(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id']),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id']),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_applications_teacher_id'), 'applications', ['teacher_id'], unique=False)
    op.create_index(op.f('ix_applications_school_id'), 'applications', ['school_id'], unique=False)
    op.create_index(op.f('ix_applications_job_id'), 'applications', ['job_id'], unique=False)
    op.create_index('idx_applications_teacher_status', 'applications', ['teacher_id', 'status'], unique=False)
    # One non-declined application per teacher/opportunity
    op.create_index(
        'uq_active_school_application', 'applications', ['teacher_id', 'school_id'],
        unique=True,
        postgresql_where=sa.text("status != 'declined' AND school_id IS NOT NULL"),
        sqlite_where=sa.text("status != 'declined' AND school_id IS NOT NULL"),
    )
    op.create_index(
        'uq_active_job_application', 'applications', ['teacher_id', 'job_id'],
        unique=True,
        postgresql_where=sa.text("status != 'declined' AND job_id IS NOT NULL"),
        sqlite_where=sa.text("status != 'declined' AND job_id IS NOT NULL"),
    )

    op.create_table(
        'interview_selections',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('school_account_id', sa.Integer(), nullable=False),
        sa.Column('teacher_id', sa.Integer(), nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='selected_for_interview'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('selected_at', sa.DateTime(), nullable=False),
        sa.Column('status_updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['school_account_id'], ['school_accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('teacher_id', 'job_id', name='uq_selection_teacher_job'),
    )
    op.create_index(op.f('ix_interview_selections_school_account_id'), 'interview_selections', ['school_account_id'], unique=False)
    op.create_index(op.f('ix_interview_selections_teacher_id'), 'interview_selections', ['teacher_id'], unique=False)
    op.create_index(op.f('ix_interview_selections_job_id'), 'interview_selections', ['job_id'], unique=False)

    op.create_table(
        'admin_users',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='admin'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'payment_sessions',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('account_type', sa.String(length=20), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='open'),
        sa.Column('provider', sa.String(length=20), nullable=False, server_default='dev'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_payment_sessions_user_id'), 'payment_sessions', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_payment_sessions_user_id'), table_name='payment_sessions')
    op.drop_table('payment_sessions')
    op.drop_table('admin_users')
    op.drop_index(op.f('ix_interview_selections_job_id'), table_name='interview_selections')
    op.drop_index(op.f('ix_interview_selections_teacher_id'), table_name='interview_selections')
    op.drop_index(op.f('ix_interview_selections_school_account_id'), table_name='interview_selections')
    op.drop_table('interview_selections')
    op.drop_index('uq_active_job_application', table_name='applications')
    op.drop_index('uq_active_school_application', table_name='applications')
    op.drop_index('idx_applications_teacher_status', table_name='applications')
    op.drop_index(op.f('ix_applications_job_id'), table_name='applications')
    op.drop_index(op.f('ix_applications_school_id'), table_name='applications')
    op.drop_index(op.f('ix_applications_teacher_id'), table_name='applications')
    op.drop_table('applications')
    op.drop_index('idx_matches_job', table_name='matches')
    op.drop_index('idx_matches_teacher', table_name='matches')
    op.drop_table('matches')
    op.drop_index('idx_jobs_account_active', table_name='jobs')
    op.drop_index(op.f('ix_jobs_city'), table_name='jobs')
    op.drop_index(op.f('ix_jobs_school_account_id'), table_name='jobs')
    op.drop_table('jobs')
    op.drop_index(op.f('ix_school_accounts_user_id'), table_name='school_accounts')
    op.drop_table('school_accounts')
    op.drop_index(op.f('ix_schools_is_active'), table_name='schools')
    op.drop_index(op.f('ix_schools_city'), table_name='schools')
    op.drop_table('schools')
    op.drop_index(op.f('ix_teachers_is_active'), table_name='teachers')
    op.drop_index(op.f('ix_teachers_email'), table_name='teachers')
    op.drop_index(op.f('ix_teachers_user_id'), table_name='teachers')
    op.drop_table('teachers')
