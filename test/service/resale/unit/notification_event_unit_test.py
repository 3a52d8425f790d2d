from decimal import Decimal

import pytest
from uuid_utils.compat import uuid7

from src.service.resale.domain.domain_event.notification_event import (
    OrderConfirmed,
    OrderExpired,
    PaymentFailed,
    PaymentSucceeded,
    PayoutFailed,
    TicketSoldSeller,
    from_payload,
    render_notification,
    to_payload,
)
from src.service.resale.domain.entity.notification_entity import Notification
from src.service.resale.domain.enum.notification_type import NotificationStatus, NotificationType
from test.service.resale.unit.helpers import BUYER, NOW, SELLER


ALL_EVENTS = [
    OrderConfirmed(
        user_id=BUYER,
        order_id=uuid7(),
        event_name='Rock Festival',
        ticket_count=3,
        total_amount=Decimal('2575.68'),
        currency='UYU',
    ),
    OrderExpired(user_id=BUYER, order_id=uuid7(), event_name='Rock Festival'),
    PaymentSucceeded(
        user_id=BUYER,
        order_id=uuid7(),
        payment_id=uuid7(),
        amount=Decimal('2575.68'),
        currency='UYU',
    ),
    PaymentFailed(user_id=BUYER, order_id=uuid7(), payment_id=uuid7()),
    TicketSoldSeller(
        user_id=SELLER,
        order_id=uuid7(),
        event_name='Rock Festival',
        ticket_count=3,
        seller_amount=Decimal('2224.32'),
        currency='UYU',
    ),
    PayoutFailed(
        user_id=SELLER,
        payout_id=uuid7(),
        amount=Decimal('1500'),
        currency='UYU',
        failure_reason='closed account',
    ),
]


class TestNotificationEvents:
    @pytest.mark.parametrize('event', ALL_EVENTS, ids=lambda e: e.type.value)
    def test_every_variant_renders(self, event):
        rendered = render_notification(event)

        assert rendered.title
        assert rendered.body

    def test_order_confirmed_body_mentions_total(self):
        rendered = render_notification(ALL_EVENTS[0])

        assert rendered.title == 'Purchase confirmed'
        assert '2575.68 UYU' in rendered.body
        assert 'Rock Festival' in rendered.body

    def test_payload_is_json_ready_and_restores_types(self):
        """
        Given: A payout failure with UUID and Decimal fields
        When: Stored as payload and read back
        Then: Strings in the payload, original types after from_payload
        """
        # Arrange
        event = ALL_EVENTS[-1]

        # Act
        payload = to_payload(event)
        restored = from_payload(NotificationType.PAYOUT_FAILED, payload)

        # Assert
        assert payload['payout_id'] == str(event.payout_id)
        assert payload['amount'] == '1500'
        assert restored == event

    def test_notification_from_event_starts_pending(self):
        notification = Notification.from_event(ALL_EVENTS[1], now=NOW)

        assert notification.user_id == BUYER
        assert notification.type == NotificationType.ORDER_EXPIRED
        assert notification.status == NotificationStatus.PENDING
        assert notification.attempts == 0

    def test_failed_attempts_stop_at_max(self):
        notification = Notification.from_event(ALL_EVENTS[1], now=NOW)

        once = notification.mark_attempt_failed(error='smtp down', max_attempts=2)
        twice = once.mark_attempt_failed(error='smtp down', max_attempts=2)

        assert once.status == NotificationStatus.PENDING
        assert twice.status == NotificationStatus.FAILED
        assert twice.attempts == 2
        assert twice.last_error == 'smtp down'
