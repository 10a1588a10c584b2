"""Add claim and priority columns to translation_jobs

Revision ID: 002_add_job_claim_columns
Revises: 001_initial
Create Date: 2026-10-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_add_job_claim_columns'
down_revision: Union[str, None] = '001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('translation_jobs', sa.Column('priority_marker', sa.String(50), nullable=True))
    op.add_column('translation_jobs', sa.Column('priority_started_at', sa.DateTime(timezone=True), nullable=True))
    op.add_column('translation_jobs', sa.Column('claimed_by', sa.String(100), nullable=True))
    op.add_column('translation_jobs', sa.Column('lease_expires_at', sa.DateTime(timezone=True), nullable=True))
    op.create_index('ix_translation_jobs_priority_marker', 'translation_jobs', ['priority_marker'])


def downgrade() -> None:
    op.drop_index('ix_translation_jobs_priority_marker')
    op.drop_column('translation_jobs', 'lease_expires_at')
    op.drop_column('translation_jobs', 'claimed_by')
    op.drop_column('translation_jobs', 'priority_started_at')
    op.drop_column('translation_jobs', 'priority_marker')
