"""Create raw_deals and deals tables with pgvector embedding column

Revision ID: 20261019_deal_pipeline_tables
Revises:
Create Date: 2026-10-19

raw_deals holds ingested posts until the cleanup job reaps processed rows.
deals holds promoted listings; embedding is filled by the backfill job.
"""
from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector

# revision identifiers, used by Alembic.
revision = '20261019_deal_pipeline_tables'
down_revision = None
branch_labels = None
depends_on = None

EMBEDDING_DIMENSIONS = 768


def upgrade():
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        'raw_deals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('external_id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('body_text', sa.Text(), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('source', sa.String(length=100), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('processed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_raw_deals_external_id', 'raw_deals', ['external_id'], unique=True)
    op.create_index('ix_raw_deals_source', 'raw_deals', ['source'])
    op.create_index('ix_raw_deals_processed', 'raw_deals', ['processed'])
    op.create_index('ix_raw_deals_created_at', 'raw_deals', ['created_at'])

    op.create_table(
        'deals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('external_id', sa.String(length=64), nullable=False),
        sa.Column('original_title', sa.String(), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('source', sa.String(length=100), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('is_sale', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('low_quality', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('professional_summary', sa.Text(), nullable=True),
        sa.Column('monthly_revenue', sa.String(), nullable=True),
        sa.Column('asking_price', sa.String(), nullable=True),
        sa.Column('user_count', sa.String(), nullable=True),
        sa.Column('link', sa.JSON(), nullable=False),
        sa.Column('other_important_stuff', sa.Text(), nullable=True),
        sa.Column('embedding', Vector(EMBEDDING_DIMENSIONS), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_deals_external_id', 'deals', ['external_id'], unique=True)
    op.create_index('ix_deals_source', 'deals', ['source'])
    op.create_index('ix_deals_is_sale', 'deals', ['is_sale'])
    op.create_index('ix_deals_created_at', 'deals', ['created_at'])

    # Partial index for the embedding backfill selection query
    op.create_index(
        'idx_deals_missing_embedding',
        'deals',
        ['created_at'],
        postgresql_where=sa.text('embedding IS NULL'),
    )


def downgrade():
    op.drop_index('idx_deals_missing_embedding', table_name='deals')
    op.drop_index('ix_deals_created_at', table_name='deals')
    op.drop_index('ix_deals_is_sale', table_name='deals')
    op.drop_index('ix_deals_source', table_name='deals')
    op.drop_index('ix_deals_external_id', table_name='deals')
    op.drop_table('deals')
    op.drop_index('ix_raw_deals_created_at', table_name='raw_deals')
    op.drop_index('ix_raw_deals_processed', table_name='raw_deals')
    op.drop_index('ix_raw_deals_source', table_name='raw_deals')
    op.drop_index('ix_raw_deals_external_id', table_name='raw_deals')
    op.drop_table('raw_deals')
