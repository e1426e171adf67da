"""Initial job tracker schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create users, companies, applications and their dependent tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('first_name', sa.String(length=50), nullable=False),
        sa.Column('last_name', sa.String(length=50), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('location', sa.String(length=100), nullable=True),
        sa.Column('linkedin_url', sa.String(length=255), nullable=True),
        sa.Column('github_url', sa.String(length=255), nullable=True),
        sa.Column('portfolio_url', sa.String(length=255), nullable=True),
        sa.Column('current_job_title', sa.String(length=100), nullable=True),
        sa.Column('experience_level', sa.String(length=20), nullable=False),
        sa.Column('preferred_salary_min', sa.Integer(), nullable=True),
        sa.Column('preferred_salary_max', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'companies',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('industry', sa.String(length=100), nullable=True),
        sa.Column('size', sa.String(length=20), nullable=True),
        sa.Column('location', sa.String(length=100), nullable=True),
        sa.Column('headquarters', sa.String(length=100), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('linkedin_url', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('founded_year', sa.Integer(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('glassdoor_rating', sa.Numeric(2, 1), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('added_by', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_companies_name', 'companies', ['name'])
    op.create_index('ix_companies_industry', 'companies', ['industry'])
    op.create_index(
        'uq_companies_name_lower', 'companies', [sa.text('lower(name)')], unique=True
    )

    op.create_table(
        'job_applications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('job_title', sa.String(length=100), nullable=False),
        sa.Column('job_description', sa.Text(), nullable=True),
        sa.Column('job_requirements', sa.Text(), nullable=True),
        sa.Column('job_url', sa.String(length=500), nullable=True),
        sa.Column('job_board_source', sa.String(length=50), nullable=False),
        sa.Column('location', sa.String(length=100), nullable=True),
        sa.Column('work_type', sa.String(length=20), nullable=False),
        sa.Column('work_mode', sa.String(length=20), nullable=True),
        sa.Column('salary_min', sa.Integer(), nullable=True),
        sa.Column('salary_max', sa.Integer(), nullable=True),
        sa.Column('salary_currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('experience_level', sa.String(length=30), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('priority', sa.String(length=10), nullable=False),
        sa.Column('applied_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_contact_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('follow_up_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('interview_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expected_response_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('response_received', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('contact_person', sa.String(length=100), nullable=True),
        sa.Column('contact_email', sa.String(length=100), nullable=True),
        sa.Column('contact_phone', sa.String(length=20), nullable=True),
        sa.Column('recruiter_name', sa.String(length=100), nullable=True),
        sa.Column('recruiter_email', sa.String(length=100), nullable=True),
        sa.Column('hiring_manager_name', sa.String(length=100), nullable=True),
        sa.Column('hiring_manager_email', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('interview_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('custom_fields', sa.JSON(), nullable=True),
        sa.Column('is_starred', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_job_applications_user_id', 'job_applications', ['user_id'])
    op.create_index('ix_job_applications_company_id', 'job_applications', ['company_id'])
    op.create_index('ix_job_applications_status', 'job_applications', ['status'])
    op.create_index('ix_job_applications_priority', 'job_applications', ['priority'])
    op.create_index('ix_job_applications_follow_up_date', 'job_applications', ['follow_up_date'])
    op.create_index('ix_job_applications_created_at', 'job_applications', ['created_at'])
    op.create_index('idx_job_applications_user_status', 'job_applications', ['user_id', 'status'])
    op.create_index('idx_job_applications_user_applied', 'job_applications', ['user_id', 'applied_date'])

    op.create_table(
        'status_history',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('job_application_id', sa.Uuid(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('from_status', sa.String(length=50), nullable=True),
        sa.Column('to_status', sa.String(length=50), nullable=False),
        sa.Column('changed_by', sa.String(length=10), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['job_application_id'], ['job_applications.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'job_application_id', 'sequence', name='uq_status_history_application_sequence'
        ),
    )
    op.create_index('ix_status_history_job_application_id', 'status_history', ['job_application_id'])
    op.create_index('ix_status_history_to_status', 'status_history', ['to_status'])
    op.create_index('ix_status_history_created_at', 'status_history', ['created_at'])
    op.create_index(
        'idx_status_history_application_created',
        'status_history',
        ['job_application_id', 'created_at'],
    )

    op.create_table(
        'keywords',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('word', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=30), nullable=False),
        sa.Column('frequency', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_keywords_word', 'keywords', ['word'], unique=True)

    op.create_table(
        'application_keywords',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('job_application_id', sa.Uuid(), nullable=False),
        sa.Column('keyword_id', sa.Uuid(), nullable=False),
        sa.Column('source', sa.String(length=30), nullable=False),
        sa.Column('match_strength', sa.Float(), nullable=False),
        sa.Column('in_resume', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('resume_frequency', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('job_frequency', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_preferred', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('skill_level', sa.String(length=20), nullable=False),
        sa.Column('years_required', sa.Integer(), nullable=True),
        sa.Column('user_skill_level', sa.String(length=20), nullable=False),
        sa.Column('user_years_experience', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('gap_score', sa.Float(), nullable=False),
        sa.Column('priority', sa.String(length=10), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['job_application_id'], ['job_applications.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['keyword_id'], ['keywords.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'job_application_id', 'keyword_id', name='uq_application_keywords_pair'
        ),
    )
    op.create_index(
        'ix_application_keywords_job_application_id', 'application_keywords', ['job_application_id']
    )
    op.create_index('ix_application_keywords_keyword_id', 'application_keywords', ['keyword_id'])
    op.create_index(
        'idx_application_keywords_gap', 'application_keywords', ['job_application_id', 'gap_score']
    )

    op.create_table(
        'documents',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('job_application_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('version', sa.String(length=20), nullable=False, server_default='1.0'),
        sa.Column('file_path', sa.String(length=500), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(length=100), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('share_url', sa.String(length=255), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('download_count', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['job_application_id'], ['job_applications.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('share_url', name='uq_documents_share_url'),
    )
    op.create_index('ix_documents_user_id', 'documents', ['user_id'])
    op.create_index('ix_documents_job_application_id', 'documents', ['job_application_id'])
    op.create_index('idx_documents_user_active', 'documents', ['user_id', 'is_active'])
    op.create_index('idx_documents_user_type', 'documents', ['user_id', 'type'])


def downgrade() -> None:
    """Drop every tracker table, dependents first."""
    op.drop_table('documents')
    op.drop_table('application_keywords')
    op.drop_table('keywords')
    op.drop_table('status_history')
    op.drop_table('job_applications')
    op.drop_index('uq_companies_name_lower', table_name='companies')
    op.drop_table('companies')
    op.drop_table('users')
