from enum import StrEnum


class SellerEarningStatus(StrEnum):
    PENDING = 'pending'
    AVAILABLE = 'available'
    RETAINED = 'retained'
    PAID_OUT = 'paid_out'
    FAILED_PAYOUT = 'failed_payout'


class PayoutStatus(StrEnum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
