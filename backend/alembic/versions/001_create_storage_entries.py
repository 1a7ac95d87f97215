"""Create storage entries table

Revision ID: 001
Revises:
Create Date: 2026-10-16

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the key/value table backing assessment and analysis storage."""
    op.create_table(
        'storage_entries',
        sa.Column('key', sa.String(length=255), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )

    # Prefix scans (keys("assessment_"), keys("riskAssessment_"))
    op.execute(
        "CREATE INDEX idx_storage_entries_key_prefix ON storage_entries (key text_pattern_ops)"
    )


def downgrade() -> None:
    """Drop the storage entries table."""
    op.execute('DROP INDEX IF EXISTS idx_storage_entries_key_prefix')
    op.drop_table('storage_entries')
