"""Phase A: Yacht rate cards and booking inquiries

Revision ID: phase_a_001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = 'phase_a_001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- Create yachts table (rate cards) ---
    op.create_table('yachts',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='EUR'),
        sa.Column('low_season_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('medium_season_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('high_season_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('crew_service_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('cleaning_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # --- Create booking_inquiries table ---
    op.create_table('booking_inquiries',
        sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('yacht_id', sa.String(length=64), nullable=False),
        sa.Column('yacht_name', sa.String(length=255), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('guests', sa.Integer(), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='EUR'),
        sa.Column('tax_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('apa_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('total_estimate', sa.Numeric(12, 2), nullable=True),
        sa.Column('price_breakdown', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_booking_inquiries_yacht_id', 'booking_inquiries', ['yacht_id'])
    op.create_index('ix_booking_inquiries_status', 'booking_inquiries', ['status'])
    op.create_index('ix_booking_inquiries_created_at', 'booking_inquiries', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_booking_inquiries_created_at', table_name='booking_inquiries')
    op.drop_index('ix_booking_inquiries_status', table_name='booking_inquiries')
    op.drop_index('ix_booking_inquiries_yacht_id', table_name='booking_inquiries')
    op.drop_table('booking_inquiries')
    op.drop_table('yachts')
