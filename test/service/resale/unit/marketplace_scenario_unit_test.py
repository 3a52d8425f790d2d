"""
End-to-end marketplace scenarios on the in-memory store

Focus:
1. Concurrent buyers never share a ticket
2. A payment webhook racing the expiration sweeper ends in exactly one consistent state
3. The full life of a sale: order, payment, hold period, payout
"""

from datetime import timedelta
from decimal import Decimal

import anyio
import pytest

from src.service.resale.app.command.check_hold_periods_use_case import CheckHoldPeriodsUseCase
from src.service.resale.app.command.create_payment_link_use_case import CreatePaymentLinkUseCase
from src.service.resale.app.command.expire_order_use_case import ExpireOrderUseCase
from src.service.resale.app.command.process_provider_event_use_case import (
    ProcessProviderEventUseCase,
)
from src.service.resale.app.command.request_payout_use_case import RequestPayoutUseCase
from src.service.resale.app.dto.job_result import ReconciliationOutcome
from src.service.resale.domain.enum.earning_status import SellerEarningStatus
from src.service.resale.domain.enum.order_status import OrderStatus
from src.service.resale.domain.enum.payment_status import (
    PaymentProviderType,
    ProviderPaymentStatus,
    ReconciliationSource,
)
from src.service.resale.domain.resale_errors import InsufficientInventoryError
from src.service.resale.driven_adapter.dispute.no_dispute_checker import NoDisputeChecker
from test.service.resale.unit.helpers import (
    BUYER,
    NOW,
    OTHER_BUYER,
    SELLER,
    line,
    seed_listing,
)


@pytest.fixture
def create_payment_link(uow_factory, provider_factory, config):
    return CreatePaymentLinkUseCase(
        uow_factory=uow_factory, provider_factory=provider_factory, config=config
    )


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


class TestConcurrentBuyers:
    @pytest.mark.asyncio
    async def test_two_buyers_race_for_three_tickets(self, store, create_order, event_and_wave):
        """
        Given: 3 tickets at 800
        When: Two buyers order 2 each at the same time
        Then: One order holds 2 tickets, the other fails with 1 available; no ticket is held twice
        """
        # Arrange
        event, wave = event_and_wave
        seed_listing(store, event=event, wave=wave, quantity=3)
        orders = []
        failures = []

        async def buy(buyer: str) -> None:
            try:
                orders.append(
                    await create_order.execute(
                        buyer_user_id=buyer, event_id=event.id, lines=[line(wave, 2)], now=NOW
                    )
                )
            except InsufficientInventoryError as e:
                failures.append(e)

        # Act
        async with anyio.create_task_group() as tg:
            tg.start_soon(buy, BUYER)
            tg.start_soon(buy, OTHER_BUYER)

        # Assert
        assert len(orders) == 1
        assert len(failures) == 1
        assert failures[0].available == 1
        holding = [r for r in store.reservations.values() if r.holds_ticket]
        assert len(holding) == 2
        assert len({r.listing_ticket_id for r in holding}) == 2


class TestWebhookRacesSweeper:
    @pytest.mark.asyncio
    async def test_outcome_is_consistent_whoever_wins(
        self,
        store,
        provider,
        create_order,
        create_payment_link,
        reconciler,
        expire_order,
        event_and_wave,
    ):
        """
        Given: A lapsed order whose payment was just approved
        When: The webhook and the sweeper process it at the same time
        Then: Either confirmed with earnings, or expired with the payment in manual review
        """
        # Arrange
        event, wave = event_and_wave
        seed_listing(store, event=event, wave=wave, quantity=2)
        order = await create_order.execute(
            buyer_user_id=BUYER, event_id=event.id, lines=[line(wave, 2)], now=NOW
        )
        link = await create_payment_link.execute(
            order_id=order.id, buyer_user_id=BUYER, now=NOW + timedelta(minutes=1)
        )
        provider.statuses[link.provider_payment_id] = ProviderPaymentStatus.PAID
        race_time = NOW + timedelta(minutes=10, seconds=1)
        outcomes = {}

        async def webhook() -> None:
            outcomes['webhook'] = await reconciler.execute(
                provider=PaymentProviderType.DLOCAL,
                provider_payment_id=link.provider_payment_id,
                source=ReconciliationSource.WEBHOOK,
                now=race_time,
            )

        async def sweep() -> None:
            outcomes['sweep'] = await expire_order.execute(order_id=order.id, now=race_time)

        # Act
        async with anyio.create_task_group() as tg:
            tg.start_soon(webhook)
            tg.start_soon(sweep)

        # Assert
        final = store.orders[order.id]
        payment = store.payments[link.payment_id]
        if final.status == OrderStatus.CONFIRMED:
            assert outcomes == {'webhook': ReconciliationOutcome.CONFIRMED, 'sweep': False}
            assert len(store.earnings) == 2
            assert not payment.requires_manual_review
        else:
            assert final.status == OrderStatus.EXPIRED
            assert outcomes == {'webhook': ReconciliationOutcome.MANUAL_REVIEW, 'sweep': True}
            assert store.earnings == {}
            assert payment.requires_manual_review
            assert all(t.sold_at is None for t in store.tickets.values())


class TestLifeOfASale:
    @pytest.mark.asyncio
    async def test_order_to_payout(
        self,
        store,
        uow_factory,
        config,
        provider,
        create_order,
        create_payment_link,
        reconciler,
        event_and_wave,
    ):
        """
        Given: A seller lists 2 tickets at 800 for an event ending in 7 days
        When: A buyer pays for both, the hold period passes and the seller requests a payout
        Then: The payout is 1482.88 UYU and both earnings are paid out
        """
        # Arrange
        event, wave = event_and_wave
        seed_listing(store, event=event, wave=wave, quantity=2)

        # Act: buy and pay
        order = await create_order.execute(
            buyer_user_id=BUYER, event_id=event.id, lines=[line(wave, 2)], now=NOW
        )
        link = await create_payment_link.execute(
            order_id=order.id, buyer_user_id=BUYER, now=NOW + timedelta(minutes=1)
        )
        provider.statuses[link.provider_payment_id] = ProviderPaymentStatus.PAID
        await reconciler.execute(
            provider=PaymentProviderType.DLOCAL,
            provider_payment_id=link.provider_payment_id,
            source=ReconciliationSource.WEBHOOK,
            now=NOW + timedelta(minutes=2),
        )

        # Act: hold period
        hold_check = CheckHoldPeriodsUseCase(
            uow_factory=uow_factory, dispute_checker=NoDisputeChecker()
        )
        too_early = await hold_check.execute(now=event.end_date + timedelta(hours=47))
        released = await hold_check.execute(now=event.end_date + timedelta(hours=48))

        # Act: payout
        earning_ids = list(store.earnings)
        payout = await RequestPayoutUseCase(uow_factory=uow_factory, config=config).execute(
            seller_user_id=SELLER,
            earning_ids=earning_ids,
            now=event.end_date + timedelta(days=3),
        )

        # Assert
        assert too_early.released == 0
        assert released.released == 2
        assert payout.amount == Decimal('1482.88')
        assert {store.earnings[i].status for i in earning_ids} == {SellerEarningStatus.PAID_OUT}
