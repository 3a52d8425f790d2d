"""
Unit tests for CreateOrderUseCase

Focus:
1. Happy path: reservations, fees and the order land in one commit
2. Guards: pending order, self-purchase, event and wave checks, quantity limits
3. All or nothing: a shortfall in any group leaves no reservation behind
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import NotFoundError, ValidationError
from src.service.resale.app.command.create_order_use_case import group_order_lines
from src.service.resale.domain.enum.order_status import OrderStatus
from src.service.resale.domain.resale_errors import (
    InsufficientInventoryError,
    PendingOrderExistsError,
)
from test.service.resale.unit.helpers import (
    BUYER,
    NOW,
    SELLER,
    line,
    make_event,
    seed_listing,
)


class TestCreateOrder:
    @pytest.mark.asyncio
    async def test_three_tickets_at_800(self, store, create_order, event_and_wave):
        """
        Given: 5 tickets listed at 800 UYU
        When: The buyer orders 3
        Then: A pending order of 2575.68 UYU holding 3 reservations for 10 minutes
        """
        # Arrange
        event, wave = event_and_wave
        seed_listing(store, event=event, wave=wave, quantity=5)

        # Act
        order = await create_order.execute(
            buyer_user_id=BUYER, event_id=event.id, lines=[line(wave, 3)], now=NOW
        )

        # Assert
        assert order.status == OrderStatus.PENDING
        assert order.subtotal_amount == Decimal('2400.00')
        assert order.platform_commission == Decimal('144.00')
        assert order.vat_commission == Decimal('31.68')
        assert order.total_amount == Decimal('2575.68')
        assert order.currency == 'UYU'
        assert order.reservation_expires_at == NOW + timedelta(minutes=10)
        assert store.orders[order.id] == order
        holding = [r for r in store.reservations.values() if r.holds_ticket]
        assert len(holding) == 3
        assert {r.order_id for r in holding} == {order.id}
        assert store.commit_count == 1

    @pytest.mark.asyncio
    async def test_lines_at_same_price_are_merged(self, store, create_order, event_and_wave):
        event, wave = event_and_wave
        seed_listing(store, event=event, wave=wave, quantity=4)

        order = await create_order.execute(
            buyer_user_id=BUYER,
            event_id=event.id,
            lines=[line(wave, 1), line(wave, 2), line(wave, 0)],
            now=NOW,
        )

        assert len(order.items) == 1
        assert order.items[0].quantity == 3
        assert order.items[0].subtotal == Decimal('2400.00')

    @pytest.mark.asyncio
    async def test_pending_order_for_same_event_is_rejected(
        self, store, create_order, event_and_wave
    ):
        # Arrange
        event, wave = event_and_wave
        seed_listing(store, event=event, wave=wave, quantity=5)
        first = await create_order.execute(
            buyer_user_id=BUYER, event_id=event.id, lines=[line(wave, 1)], now=NOW
        )

        # Act & Assert
        with pytest.raises(PendingOrderExistsError) as exc_info:
            await create_order.execute(
                buyer_user_id=BUYER, event_id=event.id, lines=[line(wave, 1)], now=NOW
            )
        assert exc_info.value.order_id == first.id

    @pytest.mark.asyncio
    async def test_seller_cannot_buy_own_tickets(self, store, create_order, event_and_wave):
        # Arrange
        event, wave = event_and_wave
        seed_listing(store, event=event, wave=wave, quantity=2, seller=SELLER)

        # Act & Assert
        with pytest.raises(ValidationError, match='listed yourself'):
            await create_order.execute(
                buyer_user_id=SELLER, event_id=event.id, lines=[line(wave, 1)], now=NOW
            )
        assert store.orders == {}
        assert store.reservations == {}

    @pytest.mark.asyncio
    async def test_unknown_event(self, create_order, event_and_wave):
        _, wave = event_and_wave

        with pytest.raises(NotFoundError):
            await create_order.execute(
                buyer_user_id=BUYER, event_id=uuid7(), lines=[line(wave, 1)], now=NOW
            )

    @pytest.mark.asyncio
    async def test_ended_event(self, store, create_order):
        event, wave = make_event(end_date=NOW - timedelta(hours=1))
        store.add_event(event, wave)

        with pytest.raises(ValidationError, match='already ended'):
            await create_order.execute(
                buyer_user_id=BUYER, event_id=event.id, lines=[line(wave, 1)], now=NOW
            )

    @pytest.mark.asyncio
    async def test_wave_of_another_event(self, store, create_order, event_and_wave):
        # Arrange
        event, _ = event_and_wave
        other_event, other_wave = make_event(name='Jazz Night')
        store.add_event(other_event, other_wave)
        seed_listing(store, event=other_event, wave=other_wave, quantity=2)

        # Act & Assert
        with pytest.raises(ValidationError, match='does not belong'):
            await create_order.execute(
                buyer_user_id=BUYER, event_id=event.id, lines=[line(other_wave, 1)], now=NOW
            )

    @pytest.mark.asyncio
    async def test_unknown_wave(self, create_order, event_and_wave):
        event, _ = event_and_wave
        ghost_wave = make_event()[1]

        with pytest.raises(NotFoundError, match='Ticket wave'):
            await create_order.execute(
                buyer_user_id=BUYER, event_id=event.id, lines=[line(ghost_wave, 1)], now=NOW
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize('quantities', [[0], [], [6, 5]])
    async def test_quantity_outside_1_to_10(self, create_order, event_and_wave, quantities):
        event, wave = event_and_wave

        with pytest.raises(ValidationError, match='between 1 and 10'):
            await create_order.execute(
                buyer_user_id=BUYER,
                event_id=event.id,
                lines=[line(wave, q) for q in quantities],
                now=NOW,
            )

    @pytest.mark.asyncio
    async def test_shortfall_in_second_group_rolls_back_first(
        self, store, create_order, event_and_wave
    ):
        """
        Given: 3 tickets at 800 and 1 ticket at 700
        When: Ordering 2 at 800 and 2 at 700
        Then: InsufficientInventoryError; the 800 group's holds are rolled back too
        """
        # Arrange
        event, wave = event_and_wave
        seed_listing(store, event=event, wave=wave, quantity=3)
        seed_listing(store, event=event, wave=wave, quantity=1, price='700.00')

        # Act
        with pytest.raises(InsufficientInventoryError) as exc_info:
            await create_order.execute(
                buyer_user_id=BUYER,
                event_id=event.id,
                lines=[line(wave, 2), line(wave, 2, price='700.00')],
                now=NOW,
            )

        # Assert
        assert exc_info.value.available == 1
        assert exc_info.value.price == Decimal('700.00')
        assert store.reservations == {}
        assert store.orders == {}
        assert store.commit_count == 0


class TestGroupOrderLines:
    def test_price_is_normalised_before_grouping(self):
        _, wave = make_event()

        groups = group_order_lines([line(wave, 1, '800'), line(wave, 2, '800.00')])

        assert groups == {(wave.id, Decimal('800.00')): 3}
