from enum import StrEnum
from typing import Any, List
from uuid import UUID

import attrs


class ReconciliationOutcome(StrEnum):
    UNCHANGED = 'unchanged'
    UPDATED = 'updated'
    CONFIRMED = 'confirmed'
    FAILED = 'failed'
    IGNORED = 'ignored'
    MANUAL_REVIEW = 'manual_review'


@attrs.frozen
class ExpiredOrdersResult:
    processed_count: int
    order_ids: List[UUID]

    def to_dict(self) -> dict[str, Any]:
        return {
            'processed_count': self.processed_count,
            'order_ids': [str(order_id) for order_id in self.order_ids],
        }


@attrs.frozen
class PaymentSyncResult:
    synced: int
    failed: int
    orders_expired: int

    def to_dict(self) -> dict[str, Any]:
        return attrs.asdict(self)


@attrs.frozen
class HoldCheckResult:
    released: int
    retained: int

    def to_dict(self) -> dict[str, Any]:
        return attrs.asdict(self)


@attrs.frozen
class DispatchResult:
    sent: int
    failed: int

    def to_dict(self) -> dict[str, Any]:
        return attrs.asdict(self)
