"""Initial migration

Revision ID: 001_initial
Revises:
Create Date: 2026-09-14

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create access_keys table
    op.create_table(
        'access_keys',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('key_hash', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('key_prefix', sa.String(12), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('owner', sa.String(100), nullable=False),
        sa.Column('scopes', postgresql.JSON(), nullable=True, default=[]),
        sa.Column('rate_limit_per_minute', sa.Integer(), nullable=False, default=60),
        sa.Column('rate_limit_per_hour', sa.Integer(), nullable=False, default=500),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
    )

    # Create translation_jobs table
    op.create_table(
        'translation_jobs',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('content_type', sa.String(50), nullable=False, index=True),
        sa.Column('content_id', sa.String(255), nullable=False, index=True),
        sa.Column('source_language', sa.String(10), nullable=False, server_default='pl'),
        sa.Column('target_language', sa.String(10), nullable=False, index=True),
        sa.Column('source_content', sa.Text(), nullable=False),
        sa.Column('translated_content', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('pending', 'processing', 'completed', 'failed', name='jobstatus'), nullable=False, default='pending'),
        sa.Column('characters_used', sa.Integer(), nullable=False, default=0),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Create translation_stats table (one row per month)
    op.create_table(
        'translation_stats',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('month_year', sa.String(7), nullable=False, unique=True),
        sa.Column('characters_used', sa.Integer(), nullable=False, default=0),
        sa.Column('characters_limit', sa.Integer(), nullable=False, default=500000),
        sa.Column('api_calls', sa.Integer(), nullable=False, default=0),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Create deepl_api_keys table
    op.create_table(
        'deepl_api_keys',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('api_key_encoded', sa.Text(), nullable=False),
        sa.Column('api_key_masked', sa.String(50), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False, default=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        sa.Column('status', sa.Enum('active', 'error', 'quota_exceeded', name='keystatus'), nullable=False, default='active'),
        sa.Column('quota_used', sa.Integer(), nullable=True),
        sa.Column('quota_remaining', sa.Integer(), nullable=True),
        sa.Column('quota_limit', sa.Integer(), nullable=True),
        sa.Column('last_test_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_sync_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Create translation_logs table (product path audit trail)
    op.create_table(
        'translation_logs',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('product_id', sa.String(100), nullable=True, index=True),
        sa.Column('api_key_used', sa.String(50), nullable=False),
        sa.Column('translation_mode', sa.String(20), nullable=False),
        sa.Column('field_name', sa.String(100), nullable=False),
        sa.Column('source_language', sa.String(10), nullable=False),
        sa.Column('target_language', sa.String(10), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('characters_used', sa.Integer(), nullable=False, default=0),
        sa.Column('error_details', sa.Text(), nullable=True),
        sa.Column('processing_time_ms', sa.Integer(), nullable=True),
        sa.Column('request_payload', postgresql.JSON(), nullable=True),
        sa.Column('response_payload', postgresql.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )

    # Create product_translations table
    op.create_table(
        'product_translations',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('product_id', sa.String(100), nullable=False, index=True),
        sa.Column('language', sa.String(10), nullable=False),
        sa.Column('field_name', sa.String(100), nullable=False),
        sa.Column('translated_value', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('product_id', 'language', 'field_name', name='uq_product_translation'),
    )

    # Create indexes
    op.create_index('ix_translation_jobs_status', 'translation_jobs', ['status'])
    op.create_index('ix_translation_jobs_created_at', 'translation_jobs', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_translation_jobs_created_at')
    op.drop_index('ix_translation_jobs_status')
    op.drop_table('product_translations')
    op.drop_table('translation_logs')
    op.drop_table('deepl_api_keys')
    op.drop_table('translation_stats')
    op.drop_table('translation_jobs')
    op.drop_table('access_keys')
    op.execute('DROP TYPE IF EXISTS keystatus')
    op.execute('DROP TYPE IF EXISTS jobstatus')
