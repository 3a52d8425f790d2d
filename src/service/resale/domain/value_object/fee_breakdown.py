from decimal import ROUND_HALF_UP, Decimal

import attrs

from src.service.resale.domain.value_object.marketplace_config import MarketplaceConfig


CENT = Decimal('0.01')


def to_money(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@attrs.frozen
class FeeRates:
    commission_rate: Decimal
    vat_rate: Decimal


@attrs.frozen
class FeeBreakdown:
    subtotal: Decimal
    platform_commission: Decimal
    vat_on_commission: Decimal
    total_amount: Decimal

    @property
    def total_fees(self) -> Decimal:
        return self.platform_commission + self.vat_on_commission


def get_fee_rates(config: MarketplaceConfig) -> FeeRates:
    return FeeRates(commission_rate=config.commission_rate, vat_rate=config.vat_rate)


def calculate_order_fees(subtotal: Decimal, config: MarketplaceConfig) -> FeeBreakdown:
    """
    Buyer-side fees: commission on the subtotal, VAT on the commission.

    Each component is rounded to cents before summing so the total always
    decomposes back into subtotal + commission + VAT exactly.
    """
    subtotal = to_money(subtotal)
    commission = to_money(subtotal * config.commission_rate)
    vat = to_money(commission * config.vat_rate)
    return FeeBreakdown(
        subtotal=subtotal,
        platform_commission=commission,
        vat_on_commission=vat,
        total_amount=subtotal + commission + vat,
    )


def calculate_seller_amount(price: Decimal, config: MarketplaceConfig) -> Decimal:
    """What the seller earns for one ticket sold at ``price``."""
    fees = calculate_order_fees(price, config)
    return fees.subtotal - fees.total_fees
