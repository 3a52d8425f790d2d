"""Resale Domain Enums"""

from src.service.resale.domain.enum.earning_status import PayoutStatus, SellerEarningStatus
from src.service.resale.domain.enum.notification_type import NotificationStatus, NotificationType
from src.service.resale.domain.enum.order_status import OrderStatus
from src.service.resale.domain.enum.payment_status import (
    PaymentEventType,
    PaymentProviderType,
    PaymentStatus,
    ProviderPaymentStatus,
    ReconciliationSource,
)

__all__ = [
    'NotificationStatus',
    'NotificationType',
    'OrderStatus',
    'PaymentEventType',
    'PaymentProviderType',
    'PaymentStatus',
    'PayoutStatus',
    'ProviderPaymentStatus',
    'ReconciliationSource',
    'SellerEarningStatus',
]
