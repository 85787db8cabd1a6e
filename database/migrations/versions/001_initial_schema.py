"""Initial schema - create cache and job tables

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-16

Creates the database schema for Clinic Staffing Monitor:
- clinic_cache: Latest scrape outcome per clinic
- scrape_jobs: Background scrape batch records
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # Create enum types
    # ==========================================================================
    job_status = postgresql.ENUM(
        'running', 'completed', 'failed',
        name='job_status',
        create_type=False,
    )
    job_status.create(op.get_bind(), checkfirst=True)

    # ==========================================================================
    # Create clinic_cache table
    # ==========================================================================
    op.create_table(
        'clinic_cache',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('clinic_name', sa.String(200), nullable=False, unique=True),
        sa.Column('shifts', postgresql.JSONB, nullable=False,
                  server_default=sa.text("'[]'::jsonb")),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_scraped', sa.DateTime(timezone=True), nullable=False),
        sa.Column('error', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('now()')),
    )

    op.create_index('ix_clinic_cache_clinic_name', 'clinic_cache', ['clinic_name'])
    op.create_index('ix_clinic_cache_last_scraped', 'clinic_cache', ['last_scraped'])

    # ==========================================================================
    # Create scrape_jobs table
    # ==========================================================================
    op.create_table(
        'scrape_jobs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text('gen_random_uuid()')),
        sa.Column('status', job_status, nullable=False, server_default='running'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('now()')),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('clinics_scraped', sa.Integer, nullable=True),
        sa.Column('error', sa.Text, nullable=True),
    )

    op.create_index('ix_scrape_jobs_started_at', 'scrape_jobs', ['started_at'])

    # ==========================================================================
    # Create updated_at trigger
    # ==========================================================================
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = now();
            RETURN NEW;
        END;
        $$ language 'plpgsql';
    """)

    op.execute("""
        CREATE TRIGGER update_clinic_cache_updated_at
        BEFORE UPDATE ON clinic_cache
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS update_clinic_cache_updated_at ON clinic_cache")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    op.drop_table('scrape_jobs')
    op.drop_table('clinic_cache')

    op.execute("DROP TYPE IF EXISTS job_status")
