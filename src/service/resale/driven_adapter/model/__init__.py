"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.resale.driven_adapter.model.event_model import EventModel, TicketWaveModel
from src.service.resale.driven_adapter.model.listing_model import ListingModel, ListingTicketModel
from src.service.resale.driven_adapter.model.notification_model import NotificationModel
from src.service.resale.driven_adapter.model.order_model import OrderItemModel, OrderModel
from src.service.resale.driven_adapter.model.payment_model import PaymentEventModel, PaymentModel
from src.service.resale.driven_adapter.model.reservation_model import (
    OrderTicketReservationModel,
)
from src.service.resale.driven_adapter.model.seller_earning_model import (
    PayoutModel,
    SellerEarningModel,
)

__all__ = [
    'EventModel',
    'ListingModel',
    'ListingTicketModel',
    'NotificationModel',
    'OrderItemModel',
    'OrderModel',
    'OrderTicketReservationModel',
    'PaymentEventModel',
    'PaymentModel',
    'PayoutModel',
    'SellerEarningModel',
    'TicketWaveModel',
]
