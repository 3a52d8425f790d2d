from decimal import Decimal
from typing import Any
from uuid import UUID

from src.platform.exception.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    UpstreamServiceError,
)


class InsufficientInventoryError(ConflictError):
    code = 'insufficient_inventory'

    def __init__(
        self, *, available: int, requested: int, price: Decimal, wave_name: str = ''
    ) -> None:
        self.available = available
        self.requested = requested
        self.price = price
        self.wave_name = wave_name
        wave = f' in {wave_name}' if wave_name else ''
        super().__init__(
            f'Only {available} ticket(s) available at {price}{wave}, requested {requested}'
        )

    def context(self) -> dict[str, Any]:
        return {
            'available': self.available,
            'requested': self.requested,
            'price': str(self.price),
        }


class PendingOrderExistsError(ConflictError):
    code = 'pending_order_exists'

    def __init__(self, *, order_id: UUID) -> None:
        self.order_id = order_id
        super().__init__(f'A pending order already exists for this event: {order_id}')

    def context(self) -> dict[str, Any]:
        return {'order_id': str(self.order_id)}


class ReservationConflictError(ConflictError):
    """Another allocation holds one of the selected tickets; the allocator retries on this"""

    code = 'reservation_conflict'

    def __init__(self, message: str = 'Tickets no longer available') -> None:
        super().__init__(message)


class ReservationLostError(ConflictError):
    """An order's reservation was released before the order could be confirmed"""

    code = 'reservation_lost'

    def __init__(self, *, order_id: UUID, held: int, expected: int) -> None:
        self.order_id = order_id
        super().__init__(
            f'Order {order_id} holds {held} of {expected} reserved tickets, cannot confirm'
        )


class InvalidStatusTransitionError(DomainError):
    code = 'invalid_status_transition'

    def __init__(self, *, entity: str, from_status: str, to_status: str) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f'{entity} cannot move from {from_status} to {to_status}')

    def context(self) -> dict[str, Any]:
        return {'from_status': str(self.from_status), 'to_status': str(self.to_status)}


class PaymentNotFoundError(NotFoundError):
    code = 'payment_not_found'

    def __init__(self, *, provider_payment_id: str) -> None:
        self.provider_payment_id = provider_payment_id
        super().__init__(f'Payment not found: {provider_payment_id}')


class PaymentAmountMismatchError(ConflictError):
    code = 'payment_amount_mismatch'

    def __init__(self, *, payment_id: UUID, paid: Decimal | None, expected: Decimal) -> None:
        self.payment_id = payment_id
        super().__init__(
            f'Payment {payment_id} amount {paid} does not match order total {expected}'
        )


class PaymentProviderError(UpstreamServiceError):
    code = 'payment_provider_error'
