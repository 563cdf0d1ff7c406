"""create companies, jobs and scraper_logs tables

Revision ID: 20260301_0000
Revises:
Create Date: 2026-03-01 00:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa

from internship_sg.database_types import GUID, JSONDocument


revision = '20260301_0000'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'companies',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('logo_url', sa.String(), nullable=True),
        sa.Column('website', sa.String(), nullable=True),
        sa.Column('industry', sa.String(), nullable=True),
        sa.Column('size', sa.String(), nullable=True),
        sa.Column('careers_url', sa.String(), nullable=False),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_scraped_at', sa.DateTime(), nullable=True),
        sa.Column('last_jobs_found', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_companies_name'), 'companies', ['name'], unique=True)
    op.create_index(op.f('ix_companies_slug'), 'companies', ['slug'], unique=True)
    op.create_index(op.f('ix_companies_industry'), 'companies', ['industry'], unique=False)
    op.create_index(op.f('ix_companies_is_enabled'), 'companies', ['is_enabled'], unique=False)

    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', GUID(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('requirements', sa.Text(), nullable=True),
        sa.Column('location', sa.String(), nullable=False, server_default='Singapore'),
        sa.Column('job_type', sa.String(), nullable=False, server_default='internship'),
        sa.Column('work_arrangement', sa.String(), nullable=False, server_default='onsite'),
        sa.Column('salary_min', sa.Integer(), nullable=True),
        sa.Column('salary_max', sa.Integer(), nullable=True),
        sa.Column('duration', sa.String(), nullable=True),
        sa.Column('application_url', sa.String(), nullable=False),
        sa.Column('source', sa.String(), nullable=False, server_default='scraped'),
        sa.Column('dedup_key', sa.String(length=64), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('posted_at', sa.DateTime(), nullable=False),
        sa.Column('last_seen_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_jobs_company_id'), 'jobs', ['company_id'], unique=False)
    op.create_index(op.f('ix_jobs_slug'), 'jobs', ['slug'], unique=True)
    op.create_index(op.f('ix_jobs_dedup_key'), 'jobs', ['dedup_key'], unique=False)
    op.create_index(op.f('ix_jobs_is_active'), 'jobs', ['is_active'], unique=False)
    op.create_index('idx_jobs_active_last_seen', 'jobs', ['is_active', 'last_seen_at'], unique=False)

    op.create_table(
        'scraper_logs',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='running'),
        sa.Column('trigger', sa.String(), nullable=False, server_default='manual'),
        sa.Column('companies_processed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('jobs_found', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('jobs_added', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('jobs_updated', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('jobs_skipped', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('jobs_deactivated', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('errors', JSONDocument(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_scraper_logs_status'), 'scraper_logs', ['status'], unique=False)
    op.create_index(op.f('ix_scraper_logs_started_at'), 'scraper_logs', ['started_at'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_scraper_logs_started_at'), table_name='scraper_logs')
    op.drop_index(op.f('ix_scraper_logs_status'), table_name='scraper_logs')
    op.drop_table('scraper_logs')

    op.drop_index('idx_jobs_active_last_seen', table_name='jobs')
    op.drop_index(op.f('ix_jobs_is_active'), table_name='jobs')
    op.drop_index(op.f('ix_jobs_dedup_key'), table_name='jobs')
    op.drop_index(op.f('ix_jobs_slug'), table_name='jobs')
    op.drop_index(op.f('ix_jobs_company_id'), table_name='jobs')
    op.drop_table('jobs')

    op.drop_index(op.f('ix_companies_is_enabled'), table_name='companies')
    op.drop_index(op.f('ix_companies_industry'), table_name='companies')
    op.drop_index(op.f('ix_companies_slug'), table_name='companies')
    op.drop_index(op.f('ix_companies_name'), table_name='companies')
    op.drop_table('companies')
