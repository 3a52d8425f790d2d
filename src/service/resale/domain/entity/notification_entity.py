from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7

from src.service.resale.domain.domain_event.notification_event import (
    NotificationEvent,
    to_payload,
)
from src.service.resale.domain.enum.notification_type import NotificationStatus, NotificationType


@attrs.define
class Notification:
    user_id: str
    type: NotificationType
    payload: dict[str, Any]
    created_at: datetime
    status: NotificationStatus = NotificationStatus.PENDING
    attempts: int = 0
    last_error: Optional[str] = None
    sent_at: Optional[datetime] = None
    id: UUID = attrs.field(factory=uuid7)

    @classmethod
    def from_event(cls, event: NotificationEvent, *, now: datetime) -> 'Notification':
        return cls(user_id=event.user_id, type=event.type, payload=to_payload(event), created_at=now)

    def mark_sent(self, *, now: datetime) -> 'Notification':
        return attrs.evolve(
            self, status=NotificationStatus.SENT, attempts=self.attempts + 1, sent_at=now
        )

    def mark_attempt_failed(self, *, error: str, max_attempts: int) -> 'Notification':
        attempts = self.attempts + 1
        status = NotificationStatus.FAILED if attempts >= max_attempts else NotificationStatus.PENDING
        return attrs.evolve(self, status=status, attempts=attempts, last_error=error[:500])
