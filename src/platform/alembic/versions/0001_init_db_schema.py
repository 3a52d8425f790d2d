"""init_db_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Schema:
- events / ticket_waves: catalog read model
- listings / listing_tickets: resale inventory, one row per ticket
- orders / order_items: buyer orders with fee breakdown
- order_ticket_reservations: ticket holds; at most one unreleased hold per ticket
- payments / payment_events: provider payments and their append-only audit log
- payouts / seller_earnings: per-ticket seller earnings and payout requests
- notifications: outbox of user notifications
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _tz(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=False)


def upgrade() -> None:
    """Create all tables with final schema."""

    # ========== Catalog ==========

    op.create_table(
        'events',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        _tz('end_date', nullable=False),
        sa.Column(
            'created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
        ),
        sa.PrimaryKeyConstraint('id', name='pk_events'),
    )

    op.create_table(
        'ticket_waves',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        _money('face_value'),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column(
            'created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
        ),
        sa.ForeignKeyConstraint(
            ['event_id'], ['events.id'], name='fk_ticket_waves_event_id_events'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_ticket_waves'),
    )
    op.create_index('ix_ticket_waves_event_id', 'ticket_waves', ['event_id'])

    # ========== Inventory ==========

    op.create_table(
        'listings',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('publisher_user_id', sa.String(length=64), nullable=False),
        sa.Column('event_id', UUID(as_uuid=True), nullable=False),
        sa.Column('ticket_wave_id', UUID(as_uuid=True), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        _tz('created_at', nullable=False),
        _tz('sold_at'),
        _tz('deleted_at'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], name='fk_listings_event_id_events'),
        sa.ForeignKeyConstraint(
            ['ticket_wave_id'], ['ticket_waves.id'], name='fk_listings_ticket_wave_id_ticket_waves'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_listings'),
    )
    op.create_index('ix_listings_publisher_user_id', 'listings', ['publisher_user_id'])
    op.create_index('ix_listings_event_id', 'listings', ['event_id'])
    op.create_index('ix_listings_ticket_wave_id', 'listings', ['ticket_wave_id'])

    op.create_table(
        'listing_tickets',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('listing_id', UUID(as_uuid=True), nullable=False),
        sa.Column('ticket_number', sa.Integer(), nullable=False),
        _money('price'),
        _tz('created_at', nullable=False),
        _tz('sold_at'),
        _tz('cancelled_at'),
        _tz('deleted_at'),
        sa.ForeignKeyConstraint(
            ['listing_id'], ['listings.id'], name='fk_listing_tickets_listing_id_listings'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_listing_tickets'),
        sa.UniqueConstraint('listing_id', 'ticket_number', name='uq_listing_tickets_listing_id'),
    )
    op.create_index(
        'listing_tickets_available_idx',
        'listing_tickets',
        ['listing_id', 'price', 'created_at'],
        postgresql_where=sa.text('sold_at IS NULL AND cancelled_at IS NULL AND deleted_at IS NULL'),
    )

    # ========== Orders ==========

    op.create_table(
        'orders',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('buyer_user_id', sa.String(length=64), nullable=False),
        sa.Column('event_id', UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        _money('subtotal_amount'),
        _money('platform_commission'),
        _money('vat_commission'),
        _money('total_amount'),
        _tz('reservation_expires_at', nullable=False),
        _tz('created_at', nullable=False),
        _tz('updated_at'),
        _tz('confirmed_at'),
        _tz('cancelled_at'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], name='fk_orders_event_id_events'),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
    )
    op.create_index(
        'orders_status_reservation_expires_at_idx', 'orders', ['status', 'reservation_expires_at']
    )
    op.create_index('orders_buyer_event_idx', 'orders', ['buyer_user_id', 'event_id'])

    op.create_table(
        'order_items',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), nullable=False),
        sa.Column('ticket_wave_id', UUID(as_uuid=True), nullable=False),
        _money('price_per_ticket'),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _money('subtotal'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], name='fk_order_items_order_id_orders'),
        sa.ForeignKeyConstraint(
            ['ticket_wave_id'],
            ['ticket_waves.id'],
            name='fk_order_items_ticket_wave_id_ticket_waves',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_order_items'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    # ========== Reservations ==========

    op.create_table(
        'order_ticket_reservations',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), nullable=False),
        sa.Column('listing_ticket_id', UUID(as_uuid=True), nullable=False),
        _tz('reserved_until', nullable=False),
        _tz('created_at', nullable=False),
        _tz('deleted_at'),
        # Reservations are written before their order row inside the same transaction
        sa.ForeignKeyConstraint(
            ['order_id'],
            ['orders.id'],
            name='fk_order_ticket_reservations_order_id_orders',
            deferrable=True,
            initially='DEFERRED',
        ),
        sa.ForeignKeyConstraint(
            ['listing_ticket_id'],
            ['listing_tickets.id'],
            name='fk_order_ticket_reservations_listing_ticket_id_listing_tickets',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_order_ticket_reservations'),
    )
    op.create_index(
        'ix_order_ticket_reservations_order_id', 'order_ticket_reservations', ['order_id']
    )
    op.create_index(
        'order_ticket_reservations_unique_active_reservation',
        'order_ticket_reservations',
        ['listing_ticket_id'],
        unique=True,
        postgresql_where=sa.text('deleted_at IS NULL'),
    )

    # ========== Payments ==========

    op.create_table(
        'payments',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), nullable=False),
        sa.Column('provider', sa.String(length=20), nullable=False),
        sa.Column('provider_payment_id', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        _money('amount'),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('redirect_url', sa.String(length=2048), nullable=True),
        sa.Column(
            'requires_manual_review', sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        _tz('created_at', nullable=False),
        _tz('updated_at'),
        _tz('succeeded_at'),
        _tz('failed_at'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], name='fk_payments_order_id_orders'),
        sa.PrimaryKeyConstraint('id', name='pk_payments'),
        sa.UniqueConstraint('provider', 'provider_payment_id', name='uq_payments_provider'),
    )
    op.create_index('ix_payments_order_id', 'payments', ['order_id'])
    op.create_index('payments_status_created_at_idx', 'payments', ['status', 'created_at'])

    op.create_table(
        'payment_events',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('payment_id', UUID(as_uuid=True), nullable=False),
        sa.Column('event_type', sa.String(length=40), nullable=False),
        sa.Column('from_status', sa.String(length=20), nullable=True),
        sa.Column('to_status', sa.String(length=20), nullable=True),
        sa.Column('event_data', JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        _tz('created_at', nullable=False),
        sa.ForeignKeyConstraint(
            ['payment_id'], ['payments.id'], name='fk_payment_events_payment_id_payments'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_payment_events'),
    )
    op.create_index('ix_payment_events_payment_id', 'payment_events', ['payment_id'])

    # ========== Earnings and payouts ==========

    op.create_table(
        'payouts',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('seller_user_id', sa.String(length=64), nullable=False),
        _money('amount'),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        _tz('requested_at', nullable=False),
        _tz('failed_at'),
        sa.Column('failure_reason', sa.String(length=500), nullable=True),
        _tz('updated_at'),
        sa.PrimaryKeyConstraint('id', name='pk_payouts'),
    )
    op.create_index('ix_payouts_seller_user_id', 'payouts', ['seller_user_id'])

    op.create_table(
        'seller_earnings',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('seller_user_id', sa.String(length=64), nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), nullable=False),
        sa.Column('listing_id', UUID(as_uuid=True), nullable=False),
        sa.Column('listing_ticket_id', UUID(as_uuid=True), nullable=False),
        sa.Column('reservation_id', UUID(as_uuid=True), nullable=True),
        _money('gross_amount'),
        _money('seller_amount'),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        _tz('hold_until', nullable=False),
        sa.Column('payout_id', UUID(as_uuid=True), nullable=True),
        _tz('released_at'),
        _tz('retained_at'),
        _tz('created_at', nullable=False),
        _tz('updated_at'),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'], name='fk_seller_earnings_order_id_orders'
        ),
        sa.ForeignKeyConstraint(
            ['listing_id'], ['listings.id'], name='fk_seller_earnings_listing_id_listings'
        ),
        sa.ForeignKeyConstraint(
            ['listing_ticket_id'],
            ['listing_tickets.id'],
            name='fk_seller_earnings_listing_ticket_id_listing_tickets',
        ),
        sa.ForeignKeyConstraint(
            ['reservation_id'],
            ['order_ticket_reservations.id'],
            name='fk_seller_earnings_reservation_id_order_ticket_reservations',
        ),
        sa.ForeignKeyConstraint(
            ['payout_id'], ['payouts.id'], name='fk_seller_earnings_payout_id_payouts'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_seller_earnings'),
    )
    op.create_index('ix_seller_earnings_order_id', 'seller_earnings', ['order_id'])
    op.create_index('ix_seller_earnings_payout_id', 'seller_earnings', ['payout_id'])
    op.create_index(
        'seller_earnings_status_hold_until_idx', 'seller_earnings', ['status', 'hold_until']
    )
    op.create_index(
        'seller_earnings_seller_status_idx', 'seller_earnings', ['seller_user_id', 'status']
    )

    # ========== Notifications ==========

    op.create_table(
        'notifications',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=40), nullable=False),
        sa.Column('payload', JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('attempts', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_error', sa.String(length=500), nullable=True),
        _tz('created_at', nullable=False),
        _tz('sent_at'),
        sa.PrimaryKeyConstraint('id', name='pk_notifications'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('notifications_status_created_at_idx', 'notifications', ['status', 'created_at'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        'notifications',
        'seller_earnings',
        'payouts',
        'payment_events',
        'payments',
        'order_ticket_reservations',
        'order_items',
        'orders',
        'listing_tickets',
        'listings',
        'ticket_waves',
        'events',
    ):
        op.drop_table(table)
