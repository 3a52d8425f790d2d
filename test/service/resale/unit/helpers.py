from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Mapping, Sequence

from uuid_utils.compat import uuid7

from src.service.resale.app.dto.order_dto import OrderLineRequest
from src.service.resale.app.interface.i_dispute_checker import IDisputeChecker
from src.service.resale.app.interface.i_notification_publisher import (
    INotificationChannel,
    INotificationPublisher,
)
from src.service.resale.app.interface.i_payment_provider import (
    CreatePaymentParams,
    IPaymentProvider,
    ProviderPayment,
    ProviderPaymentData,
)
from src.service.resale.domain.domain_event.notification_event import (
    NotificationEvent,
    RenderedNotification,
)
from src.service.resale.domain.entity.event_entity import Event, TicketWave
from src.service.resale.domain.entity.listing_entity import Listing
from src.service.resale.domain.entity.seller_earning_entity import SellerEarning
from src.service.resale.domain.enum.payment_status import (
    PaymentProviderType,
    ProviderPaymentStatus,
)
from src.service.resale.domain.resale_errors import PaymentProviderError
from src.service.resale.domain.value_object.marketplace_config import MarketplaceConfig
from test.service.resale.unit.fake_unit_of_work import InMemoryStore


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
SELLER = 'seller-1'
OTHER_SELLER = 'seller-2'
BUYER = 'buyer-1'
OTHER_BUYER = 'buyer-2'


class FakePaymentProvider(IPaymentProvider):
    """Hosted checkout double: statuses are set by the test, create_payment hands out sequential ids

    get_status reports the amount the checkout was created with unless ``charges`` overrides it.
    """

    name = PaymentProviderType.DLOCAL

    def __init__(self) -> None:
        self.statuses: dict[str, ProviderPaymentStatus] = {}
        self.charges: dict[str, tuple[Decimal | None, str | None]] = {}
        self.unreachable: set[str] = set()
        self.created: List[CreatePaymentParams] = []
        self.status_calls: List[str] = []
        self.signature_valid = True
        self.create_status = ProviderPaymentStatus.PENDING

    async def create_payment(self, *, params: CreatePaymentParams) -> ProviderPayment:
        self.created.append(params)
        provider_payment_id = f'DL-{len(self.created)}'
        self.statuses.setdefault(provider_payment_id, self.create_status)
        self.charges.setdefault(provider_payment_id, (params.amount, params.currency))
        return ProviderPayment(
            provider_payment_id=provider_payment_id,
            redirect_url=f'https://checkout.test/{provider_payment_id}',
            status=self.create_status,
        )

    async def get_status(self, *, provider_payment_id: str) -> ProviderPaymentData:
        self.status_calls.append(provider_payment_id)
        if provider_payment_id in self.unreachable:
            raise PaymentProviderError('dLocal unreachable: ConnectError')
        amount, currency = self.charges.get(provider_payment_id, (None, None))
        return ProviderPaymentData(
            status=self.statuses.get(provider_payment_id, ProviderPaymentStatus.PENDING),
            amount=amount,
            currency=currency,
        )

    def verify_webhook_signature(self, *, raw_body: bytes, headers: Mapping[str, str]) -> bool:
        return self.signature_valid


class RecordingPublisher(INotificationPublisher):
    def __init__(self) -> None:
        self.events: List[NotificationEvent] = []

    async def publish(self, *, events: Sequence[NotificationEvent]) -> None:
        self.events.extend(events)

    def of_type(self, event_cls: type) -> List[NotificationEvent]:
        return [event for event in self.events if isinstance(event, event_cls)]


class RecordingChannel(INotificationChannel):
    def __init__(self, *, failing_users: set[str] | None = None) -> None:
        self.sent: List[tuple[str, RenderedNotification]] = []
        self.failing_users = failing_users or set()

    async def send(self, *, user_id: str, notification: RenderedNotification) -> None:
        if user_id in self.failing_users:
            raise ConnectionError(f'mailbox of {user_id} unavailable')
        self.sent.append((user_id, notification))


class StaticDisputeChecker(IDisputeChecker):
    def __init__(self, *, disputed_order_ids: set | None = None) -> None:
        self.disputed_order_ids = disputed_order_ids or set()

    async def has_open_dispute(self, *, earning: SellerEarning) -> bool:
        return earning.order_id in self.disputed_order_ids


def make_event(
    *, end_date: datetime | None = None, name: str = 'Rock Festival'
) -> tuple[Event, TicketWave]:
    event = Event(id=uuid7(), name=name, end_date=end_date or NOW + timedelta(days=7))
    wave = TicketWave(
        id=uuid7(),
        event_id=event.id,
        name='General Admission',
        face_value=Decimal('1000.00'),
        currency='UYU',
    )
    return event, wave


def seed_listing(
    store: InMemoryStore,
    *,
    event: Event,
    wave: TicketWave,
    quantity: int,
    price: str = '800.00',
    seller: str = SELLER,
    now: datetime = NOW,
    config: MarketplaceConfig | None = None,
) -> Listing:
    listing = Listing.create(
        publisher_user_id=seller,
        event=event,
        ticket_wave=wave,
        quantity=quantity,
        price=Decimal(price),
        max_quantity=(config or MarketplaceConfig()).max_tickets_per_order,
        now=now,
    )
    return store.add_listing(listing)


def line(wave: TicketWave, quantity: int, price: str = '800.00') -> OrderLineRequest:
    return OrderLineRequest(ticket_wave_id=wave.id, price=Decimal(price), quantity=quantity)
