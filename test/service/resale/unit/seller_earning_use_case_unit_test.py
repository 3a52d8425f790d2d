"""
Unit tests for the seller earnings hold engine and payouts

Focus:
1. Earnings leave pending only once hold_until has passed
2. Open disputes retain earnings instead of releasing them
3. Payouts take available earnings above the currency minimum; a failed payout
   makes fresh available copies
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import NotFoundError, UnauthorizedError, ValidationError
from src.service.resale.app.command.check_hold_periods_use_case import CheckHoldPeriodsUseCase
from src.service.resale.app.command.fail_payout_use_case import FailPayoutUseCase
from src.service.resale.app.command.request_payout_use_case import RequestPayoutUseCase
from src.service.resale.app.query.get_seller_balance_use_case import GetSellerBalanceUseCase
from src.service.resale.domain.domain_event.notification_event import PayoutFailed
from src.service.resale.domain.entity.seller_earning_entity import SellerEarning
from src.service.resale.domain.enum.earning_status import PayoutStatus, SellerEarningStatus
from src.service.resale.domain.resale_errors import InvalidStatusTransitionError
from src.service.resale.driven_adapter.dispute.no_dispute_checker import NoDisputeChecker
from test.service.resale.unit.helpers import NOW, OTHER_SELLER, SELLER, StaticDisputeChecker


def _earning(
    store,
    *,
    seller: str = SELLER,
    amount: str = '741.44',
    hold_until=NOW - timedelta(minutes=1),
    status: SellerEarningStatus = SellerEarningStatus.PENDING,
    listing_id=None,
    currency: str = 'UYU',
) -> SellerEarning:
    earning = SellerEarning.for_sold_ticket(
        seller_user_id=seller,
        order_id=uuid7(),
        listing_id=listing_id or uuid7(),
        listing_ticket_id=uuid7(),
        reservation_id=uuid7(),
        gross_amount=Decimal('800.00'),
        seller_amount=Decimal(amount),
        currency=currency,
        hold_until=hold_until,
        now=NOW - timedelta(days=3),
    )
    if status == SellerEarningStatus.AVAILABLE:
        earning = earning.release(now=NOW - timedelta(days=1))
    return store.add_earning(earning)


class TestCheckHoldPeriods:
    @pytest.mark.asyncio
    async def test_due_earnings_are_released(self, store, uow_factory):
        """
        Given: Two earnings whose hold ended and one still inside its hold
        When: The hold check runs
        Then: The two due earnings become available; the other stays pending
        """
        # Arrange
        due = [_earning(store), _earning(store)]
        held = _earning(store, hold_until=NOW + timedelta(hours=1))
        use_case = CheckHoldPeriodsUseCase(uow_factory=uow_factory, dispute_checker=NoDisputeChecker())

        # Act
        result = await use_case.execute(now=NOW)

        # Assert
        assert result.released == 2
        assert result.retained == 0
        assert {store.earnings[e.id].status for e in due} == {SellerEarningStatus.AVAILABLE}
        assert store.earnings[due[0].id].released_at == NOW
        assert store.earnings[held.id].status == SellerEarningStatus.PENDING

    @pytest.mark.asyncio
    async def test_disputed_earnings_are_retained(self, store, uow_factory):
        # Arrange
        clean = _earning(store)
        disputed = _earning(store)
        checker = StaticDisputeChecker(disputed_order_ids={disputed.order_id})
        use_case = CheckHoldPeriodsUseCase(uow_factory=uow_factory, dispute_checker=checker)

        # Act
        result = await use_case.execute(now=NOW)

        # Assert
        assert (result.released, result.retained) == (1, 1)
        assert store.earnings[clean.id].status == SellerEarningStatus.AVAILABLE
        assert store.earnings[disputed.id].status == SellerEarningStatus.RETAINED
        assert store.earnings[disputed.id].retained_at == NOW

    @pytest.mark.asyncio
    async def test_processes_every_batch(self, store, uow_factory):
        """
        Given: 5 due earnings and a batch size of 2
        When: The hold check runs
        Then: All 5 are released across three transactions
        """
        # Arrange
        for _ in range(5):
            _earning(store)
        use_case = CheckHoldPeriodsUseCase(uow_factory=uow_factory, dispute_checker=NoDisputeChecker())

        # Act
        result = await use_case.execute(batch_size=2, now=NOW)

        # Assert
        assert result.released == 5
        assert store.commit_count == 3
        assert result.to_dict() == {'released': 5, 'retained': 0}


class TestRequestPayout:
    @pytest.mark.asyncio
    async def test_payout_above_minimum(self, store, uow_factory, config):
        """
        Given: Two available earnings of 741.44 UYU
        When: The seller requests a payout of both
        Then: A pending payout of 1482.88 UYU; both earnings paid out and linked to it
        """
        # Arrange
        earnings = [
            _earning(store, status=SellerEarningStatus.AVAILABLE),
            _earning(store, status=SellerEarningStatus.AVAILABLE),
        ]

        # Act
        payout = await RequestPayoutUseCase(uow_factory=uow_factory, config=config).execute(
            seller_user_id=SELLER, earning_ids=[e.id for e in earnings], now=NOW
        )

        # Assert
        assert payout.amount == Decimal('1482.88')
        assert payout.currency == 'UYU'
        assert payout.status == PayoutStatus.PENDING
        assert store.payouts[payout.id] == payout
        for earning in earnings:
            assert store.earnings[earning.id].status == SellerEarningStatus.PAID_OUT
            assert store.earnings[earning.id].payout_id == payout.id

    @pytest.mark.asyncio
    async def test_below_minimum_is_rejected(self, store, uow_factory, config):
        earning = _earning(store, status=SellerEarningStatus.AVAILABLE)

        with pytest.raises(ValidationError, match='Minimum payout is 1000 UYU'):
            await RequestPayoutUseCase(uow_factory=uow_factory, config=config).execute(
                seller_user_id=SELLER, earning_ids=[earning.id], now=NOW
            )
        assert store.payouts == {}
        assert store.earnings[earning.id].status == SellerEarningStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_pending_earning_cannot_be_paid_out(self, store, uow_factory, config):
        available = _earning(store, amount='900', status=SellerEarningStatus.AVAILABLE)
        pending = _earning(store, amount='900', hold_until=NOW + timedelta(days=1))

        with pytest.raises(ValidationError, match='Only available'):
            await RequestPayoutUseCase(uow_factory=uow_factory, config=config).execute(
                seller_user_id=SELLER, earning_ids=[available.id, pending.id], now=NOW
            )

    @pytest.mark.asyncio
    async def test_other_sellers_earnings(self, store, uow_factory, config):
        earning = _earning(store, seller=OTHER_SELLER, amount='1500', status=SellerEarningStatus.AVAILABLE)

        with pytest.raises(UnauthorizedError):
            await RequestPayoutUseCase(uow_factory=uow_factory, config=config).execute(
                seller_user_id=SELLER, earning_ids=[earning.id], now=NOW
            )

    @pytest.mark.asyncio
    async def test_unknown_earning(self, uow_factory, config):
        with pytest.raises(NotFoundError):
            await RequestPayoutUseCase(uow_factory=uow_factory, config=config).execute(
                seller_user_id=SELLER, earning_ids=[uuid7()], now=NOW
            )

    @pytest.mark.asyncio
    async def test_empty_selection(self, uow_factory, config):
        with pytest.raises(ValidationError):
            await RequestPayoutUseCase(uow_factory=uow_factory, config=config).execute(
                seller_user_id=SELLER, earning_ids=[], now=NOW
            )


class TestFailPayout:
    @pytest.mark.asyncio
    async def test_failed_payout_makes_earnings_available_again(
        self, store, uow_factory, config, publisher
    ):
        """
        Given: A pending payout covering two earnings
        When: The bank rejects it
        Then: Payout failed, originals closed as failed_payout, two fresh available copies,
              seller notified
        """
        # Arrange
        earnings = [
            _earning(store, amount='600', status=SellerEarningStatus.AVAILABLE),
            _earning(store, amount='600', status=SellerEarningStatus.AVAILABLE),
        ]
        payout = await RequestPayoutUseCase(uow_factory=uow_factory, config=config).execute(
            seller_user_id=SELLER, earning_ids=[e.id for e in earnings], now=NOW
        )
        use_case = FailPayoutUseCase(uow_factory=uow_factory, notification_publisher=publisher)

        # Act
        failed = await use_case.execute(payout_id=payout.id, reason='closed account', now=NOW)

        # Assert
        assert failed.status == PayoutStatus.FAILED
        assert failed.failure_reason == 'closed account'
        for earning in earnings:
            assert store.earnings[earning.id].status == SellerEarningStatus.FAILED_PAYOUT
        clones = [
            e
            for e in store.earnings.values()
            if e.status == SellerEarningStatus.AVAILABLE and e.id not in {x.id for x in earnings}
        ]
        assert len(clones) == 2
        assert all(clone.payout_id is None for clone in clones)
        assert [type(e) for e in publisher.events] == [PayoutFailed]
        assert publisher.events[0].user_id == SELLER

    @pytest.mark.asyncio
    async def test_payout_can_only_fail_once(self, store, uow_factory, config, publisher):
        earning = _earning(store, amount='1200', status=SellerEarningStatus.AVAILABLE)
        payout = await RequestPayoutUseCase(uow_factory=uow_factory, config=config).execute(
            seller_user_id=SELLER, earning_ids=[earning.id], now=NOW
        )
        use_case = FailPayoutUseCase(uow_factory=uow_factory, notification_publisher=publisher)
        await use_case.execute(payout_id=payout.id, reason='closed account', now=NOW)

        with pytest.raises(InvalidStatusTransitionError):
            await use_case.execute(payout_id=payout.id, reason='again', now=NOW)

    @pytest.mark.asyncio
    async def test_unknown_payout(self, uow_factory, publisher):
        with pytest.raises(NotFoundError):
            await FailPayoutUseCase(
                uow_factory=uow_factory, notification_publisher=publisher
            ).execute(payout_id=uuid7(), reason='x', now=NOW)


class TestSellerBalance:
    @pytest.mark.asyncio
    async def test_balance_by_status_and_listing(self, store, uow_factory):
        """
        Given: Available, pending and retained earnings across two listings
        When: The seller reads the balance
        Then: Totals per status; available earnings grouped by listing
        """
        # Arrange
        listing_a, listing_b = uuid7(), uuid7()
        _earning(store, listing_id=listing_a, status=SellerEarningStatus.AVAILABLE)
        _earning(store, listing_id=listing_a, status=SellerEarningStatus.AVAILABLE)
        _earning(store, listing_id=listing_b, hold_until=NOW + timedelta(days=1))
        retained = _earning(store, listing_id=listing_b)
        store.earnings[retained.id] = retained.retain(now=NOW)
        _earning(store, seller=OTHER_SELLER, status=SellerEarningStatus.AVAILABLE)

        # Act
        balance = await GetSellerBalanceUseCase(uow_factory=uow_factory).execute(
            seller_user_id=SELLER
        )

        # Assert
        [uyu] = balance.balances
        assert uyu.available == Decimal('1482.88')
        assert uyu.pending == Decimal('741.44')
        assert uyu.retained == Decimal('741.44')
        assert uyu.paid_out == Decimal('0')
        [by_listing] = balance.available_by_listing
        assert by_listing.listing_id == listing_a
        assert by_listing.ticket_count == 2
        assert by_listing.seller_amount == Decimal('1482.88')
