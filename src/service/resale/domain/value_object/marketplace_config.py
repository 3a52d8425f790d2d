from datetime import timedelta
from decimal import Decimal

import attrs

from src.platform.config.core_setting import Settings


@attrs.frozen
class MarketplaceConfig:
    """
    Business knobs of the marketplace, resolved once at startup.

    Domain code receives this object instead of reading settings so tests
    can run the same flows with different rates and windows.
    """

    commission_rate: Decimal = Decimal('0.06')
    vat_rate: Decimal = Decimal('0.22')
    default_currency: str = 'UYU'
    order_reservation_window: timedelta = timedelta(minutes=10)
    payment_link_reservation_window: timedelta = timedelta(minutes=5)
    max_tickets_per_order: int = 10
    allocation_max_retries: int = 3
    payout_hold_period: timedelta = timedelta(hours=48)
    payout_minimums: dict[str, Decimal] = attrs.field(
        factory=lambda: {'UYU': Decimal('1000'), 'USD': Decimal('25')}
    )

    @classmethod
    def from_settings(cls, settings: Settings) -> 'MarketplaceConfig':
        return cls(
            commission_rate=Decimal(str(settings.PLATFORM_COMMISSION_RATE)),
            vat_rate=Decimal(str(settings.VAT_RATE)),
            default_currency=settings.DEFAULT_CURRENCY,
            order_reservation_window=timedelta(minutes=settings.ORDER_RESERVATION_MINUTES),
            payment_link_reservation_window=timedelta(
                minutes=settings.PAYMENT_LINK_RESERVATION_MINUTES
            ),
            max_tickets_per_order=settings.MAX_TICKETS_PER_ORDER,
            allocation_max_retries=settings.ALLOCATION_MAX_RETRIES,
            payout_hold_period=timedelta(hours=settings.PAYOUT_HOLD_PERIOD_HOURS),
            payout_minimums={
                'UYU': Decimal(str(settings.PAYOUT_MINIMUM_UYU)),
                'USD': Decimal(str(settings.PAYOUT_MINIMUM_USD)),
            },
        )

    def payout_minimum(self, currency: str) -> Decimal:
        return self.payout_minimums.get(currency, Decimal('0'))
