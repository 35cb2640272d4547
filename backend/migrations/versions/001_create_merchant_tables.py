"""Create merchant, merchant_alias and embedding_cache tables with pgvector support

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Enable pgvector extension (idempotent)
    op.execute('CREATE EXTENSION IF NOT EXISTS vector')

    op.create_table(
        'merchant',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('display_name', sa.String(500), nullable=False),
        sa.Column('display_name_key', sa.String(500), nullable=False),
        sa.Column('category', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    # Nullable: merchants created while the provider is down are backfilled later
    op.execute('ALTER TABLE merchant ADD COLUMN embedding VECTOR(1536)')

    # Case-insensitive uniqueness; concurrent creations collide here
    op.create_index('ix_merchant_display_name_key', 'merchant', ['display_name_key'], unique=True)

    op.create_table(
        'merchant_alias',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('merchant_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('alias', sa.Text(), nullable=False),
        sa.Column('alias_key', sa.Text(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchant.id'], ondelete='CASCADE'),
    )
    op.create_index('idx_merchant_alias_key', 'merchant_alias', ['alias_key'])
    op.create_index('idx_merchant_alias_unique', 'merchant_alias', ['merchant_id', 'alias_key'], unique=True)

    op.create_table(
        'embedding_cache',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('text_hash', sa.String(64), nullable=False),  # SHA256 hex
        sa.Column('normalized_text', sa.Text(), nullable=False),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('last_used_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.execute('ALTER TABLE embedding_cache ADD COLUMN embedding VECTOR(1536) NOT NULL')

    op.create_index('idx_embedding_cache_text_hash', 'embedding_cache', ['text_hash'], unique=True)
    op.create_index('idx_embedding_cache_retention', 'embedding_cache', ['last_used_at', 'usage_count'])

    # HNSW index for cosine similarity search over merchant embeddings
    op.execute("""
        CREATE INDEX idx_merchant_embedding_hnsw
        ON merchant
        USING hnsw (embedding vector_cosine_ops)
        WITH (m = 16, ef_construction = 200)
    """)


def downgrade():
    op.execute('DROP INDEX IF EXISTS idx_merchant_embedding_hnsw')

    op.drop_index('idx_embedding_cache_retention', table_name='embedding_cache')
    op.drop_index('idx_embedding_cache_text_hash', table_name='embedding_cache')
    op.drop_table('embedding_cache')

    op.drop_index('idx_merchant_alias_unique', table_name='merchant_alias')
    op.drop_index('idx_merchant_alias_key', table_name='merchant_alias')
    op.drop_table('merchant_alias')

    op.drop_index('ix_merchant_display_name_key', table_name='merchant')
    op.drop_table('merchant')

    # The vector extension is left in place for other schemas
