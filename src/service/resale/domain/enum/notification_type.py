from enum import StrEnum


class NotificationType(StrEnum):
    ORDER_CONFIRMED = 'order_confirmed'
    ORDER_EXPIRED = 'order_expired'
    PAYMENT_SUCCEEDED = 'payment_succeeded'
    PAYMENT_FAILED = 'payment_failed'
    TICKET_SOLD_SELLER = 'ticket_sold_seller'
    PAYOUT_FAILED = 'payout_failed'


class NotificationStatus(StrEnum):
    PENDING = 'pending'
    SENT = 'sent'
    FAILED = 'failed'
