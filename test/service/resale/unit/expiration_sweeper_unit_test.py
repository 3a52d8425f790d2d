"""
Unit tests for the expiration sweeper and the payment status sync

Focus:
1. Lapsed pending orders are expired and their tickets become available again
2. A payment that cleared just before the deadline confirms instead of expiring
3. Sync phase 1 polls stale payments; phase 2 expires orders whose payments all failed
"""

from datetime import timedelta

import pytest

from src.service.resale.app.command.create_payment_link_use_case import CreatePaymentLinkUseCase
from src.service.resale.app.command.expire_order_use_case import ExpireOrderUseCase
from src.service.resale.app.command.process_expired_orders_use_case import (
    ProcessExpiredOrdersUseCase,
)
from src.service.resale.app.command.process_payment_sync_use_case import (
    ProcessPaymentSyncUseCase,
)
from src.service.resale.app.command.process_provider_event_use_case import (
    ProcessProviderEventUseCase,
)
from src.service.resale.domain.domain_event.notification_event import OrderExpired
from src.service.resale.domain.enum.order_status import OrderStatus
from src.service.resale.domain.enum.payment_status import PaymentStatus, ProviderPaymentStatus
from test.service.resale.unit.helpers import BUYER, NOW, OTHER_BUYER, line, make_event, seed_listing


AFTER_WINDOW = NOW + timedelta(minutes=11)


@pytest.fixture
def reconciler(uow_factory, provider_factory, state_machine, publisher):
    return ProcessProviderEventUseCase(
        uow_factory=uow_factory,
        provider_factory=provider_factory,
        order_state_machine=state_machine,
        notification_publisher=publisher,
    )


@pytest.fixture
def expire_order(uow_factory, state_machine, publisher):
    return ExpireOrderUseCase(
        uow_factory=uow_factory, order_state_machine=state_machine, notification_publisher=publisher
    )


@pytest.fixture
def sweeper(uow_factory, reconciler, expire_order):
    return ProcessExpiredOrdersUseCase(
        uow_factory=uow_factory, reconciler=reconciler, expire_order=expire_order
    )


@pytest.fixture
def payment_sync(uow_factory, reconciler, expire_order):
    return ProcessPaymentSyncUseCase(
        uow_factory=uow_factory, reconciler=reconciler, expire_order=expire_order, batch_size=2
    )


@pytest.fixture
def create_payment_link(uow_factory, provider_factory, config):
    return CreatePaymentLinkUseCase(
        uow_factory=uow_factory, provider_factory=provider_factory, config=config
    )


@pytest.fixture
async def pending_order(store, create_order, event_and_wave):
    event, wave = event_and_wave
    seed_listing(store, event=event, wave=wave, quantity=2)
    return await create_order.execute(
        buyer_user_id=BUYER, event_id=event.id, lines=[line(wave, 2)], now=NOW
    )


class TestExpireOrder:
    @pytest.mark.asyncio
    async def test_lapsed_order_is_expired_and_buyer_notified(
        self, store, publisher, expire_order, pending_order
    ):
        # Act
        expired = await expire_order.execute(order_id=pending_order.id, now=AFTER_WINDOW)

        # Assert
        assert expired is True
        assert store.orders[pending_order.id].status == OrderStatus.EXPIRED
        assert not any(r.holds_ticket for r in store.reservations.values())
        assert [type(e) for e in publisher.events] == [OrderExpired]

    @pytest.mark.asyncio
    async def test_order_inside_window_is_left_alone(self, store, expire_order, pending_order):
        expired = await expire_order.execute(
            order_id=pending_order.id, now=NOW + timedelta(minutes=9)
        )

        assert expired is False
        assert store.orders[pending_order.id].status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_order_with_succeeded_payment_is_never_expired(
        self, store, create_payment_link, expire_order, pending_order
    ):
        # Arrange
        link = await create_payment_link.execute(
            order_id=pending_order.id, buyer_user_id=BUYER, now=NOW + timedelta(minutes=1)
        )
        payment = store.payments[link.payment_id]
        store.payments[payment.id] = payment.transition_to(PaymentStatus.SUCCEEDED, now=NOW)

        # Act
        expired = await expire_order.execute(order_id=pending_order.id, now=AFTER_WINDOW)

        # Assert
        assert expired is False
        assert store.orders[pending_order.id].status == OrderStatus.PENDING


class TestProcessExpiredOrders:
    @pytest.mark.asyncio
    async def test_sweep_expires_lapsed_orders_only(
        self, store, create_order, sweeper, pending_order, event_and_wave
    ):
        """
        Given: One order past its window and one created later, still inside it
        When: The sweeper runs
        Then: Only the lapsed order is expired; its tickets can be bought again
        """
        # Arrange
        event, wave = event_and_wave
        seed_listing(store, event=event, wave=wave, quantity=1)
        fresh = await create_order.execute(
            buyer_user_id=OTHER_BUYER, event_id=event.id, lines=[line(wave, 1)], now=NOW + timedelta(minutes=5)
        )

        # Act
        result = await sweeper.execute(now=AFTER_WINDOW)

        # Assert
        assert result.processed_count == 1
        assert result.order_ids == [pending_order.id]
        assert store.orders[pending_order.id].status == OrderStatus.EXPIRED
        assert store.orders[fresh.id].status == OrderStatus.PENDING
        assert result.to_dict() == {'processed_count': 1, 'order_ids': [str(pending_order.id)]}

        reorder = await create_order.execute(
            buyer_user_id=BUYER, event_id=event.id, lines=[line(wave, 2)], now=AFTER_WINDOW
        )
        assert reorder.status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_payment_cleared_before_deadline_confirms(
        self, store, provider, create_payment_link, sweeper, pending_order
    ):
        """
        Given: A lapsed order whose payment was approved but the webhook never came
        When: The sweeper runs
        Then: The re-sync confirms the order instead of expiring it
        """
        # Arrange
        link = await create_payment_link.execute(
            order_id=pending_order.id, buyer_user_id=BUYER, now=NOW + timedelta(minutes=1)
        )
        provider.statuses[link.provider_payment_id] = ProviderPaymentStatus.PAID

        # Act
        result = await sweeper.execute(now=AFTER_WINDOW)

        # Assert
        assert result.processed_count == 0
        assert store.orders[pending_order.id].status == OrderStatus.CONFIRMED
        assert store.payments[link.payment_id].status == PaymentStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_unreachable_provider_does_not_block_expiry(
        self, store, provider, create_payment_link, sweeper, pending_order
    ):
        # Arrange
        link = await create_payment_link.execute(
            order_id=pending_order.id, buyer_user_id=BUYER, now=NOW + timedelta(minutes=1)
        )
        provider.unreachable.add(link.provider_payment_id)

        # Act
        result = await sweeper.execute(now=AFTER_WINDOW)

        # Assert
        assert result.processed_count == 1
        assert store.orders[pending_order.id].status == OrderStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_nothing_to_sweep(self, sweeper):
        result = await sweeper.execute(now=NOW)

        assert result.processed_count == 0
        assert result.order_ids == []


class TestPaymentSync:
    @pytest.mark.asyncio
    async def test_stale_payments_are_polled(
        self, store, provider, create_order, create_payment_link, payment_sync
    ):
        """
        Given: Three payments older than five minutes, one provider call failing
        When: The sync runs
        Then: Two are synced (one confirms its order), one is counted as failed
        """
        # Arrange
        links = []
        for buyer in ('buyer-a', 'buyer-b', 'buyer-c'):
            event, wave = make_event(name=f'Show for {buyer}')
            store.add_event(event, wave)
            seed_listing(store, event=event, wave=wave, quantity=1)
            order = await create_order.execute(
                buyer_user_id=buyer, event_id=event.id, lines=[line(wave, 1)], now=NOW
            )
            links.append(
                await create_payment_link.execute(order_id=order.id, buyer_user_id=buyer, now=NOW)
            )
        provider.statuses[links[0].provider_payment_id] = ProviderPaymentStatus.PAID
        provider.unreachable.add(links[2].provider_payment_id)

        # Act
        result = await payment_sync.execute(now=NOW + timedelta(minutes=6))

        # Assert
        assert result.synced == 2
        assert result.failed == 1
        assert result.orders_expired == 0
        assert sorted(provider.status_calls) == sorted(link.provider_payment_id for link in links)
        assert store.payments[links[0].payment_id].status == PaymentStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_young_payments_are_not_polled(
        self, provider, create_payment_link, payment_sync, pending_order
    ):
        await create_payment_link.execute(order_id=pending_order.id, buyer_user_id=BUYER, now=NOW)

        result = await payment_sync.execute(now=NOW + timedelta(minutes=4))

        assert result.synced == 0
        assert provider.status_calls == []

    @pytest.mark.asyncio
    async def test_lapsed_order_with_only_failed_payments_is_expired(
        self, store, provider, publisher, create_payment_link, payment_sync, pending_order
    ):
        """
        Given: A lapsed pending order whose only payment failed
        When: The sync runs
        Then: Phase 2 expires it and releases its tickets
        """
        # Arrange
        link = await create_payment_link.execute(
            order_id=pending_order.id, buyer_user_id=BUYER, now=NOW
        )
        provider.statuses[link.provider_payment_id] = ProviderPaymentStatus.FAILED

        # Act
        result = await payment_sync.execute(now=AFTER_WINDOW)

        # Assert
        assert result.synced == 1
        assert result.orders_expired == 1
        assert store.orders[pending_order.id].status == OrderStatus.EXPIRED
        assert not any(r.holds_ticket for r in store.reservations.values())
        assert result.to_dict() == {'synced': 1, 'failed': 0, 'orders_expired': 1}
