from datetime import datetime, timezone

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.dto.job_result import DispatchResult
from src.service.resale.app.interface.i_notification_publisher import INotificationChannel
from src.service.resale.domain.domain_event.notification_event import (
    from_payload,
    render_notification,
)


class DispatchPendingNotificationsUseCase:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        channel: INotificationChannel,
        batch_size: int = 100,
        max_attempts: int = 3,
    ) -> None:
        self.uow_factory = uow_factory
        self.channel = channel
        self.batch_size = batch_size
        self.max_attempts = max_attempts

    @Logger.io
    async def execute(
        self, *, batch_size: int | None = None, now: datetime | None = None
    ) -> DispatchResult:
        now = now or datetime.now(timezone.utc)
        sent = 0
        failed = 0

        async with self.uow_factory() as uow:
            pending = await uow.notification_repo.list_pending_for_update(
                limit=batch_size or self.batch_size
            )
            for notification in pending:
                try:
                    rendered = render_notification(
                        from_payload(notification.type, notification.payload)
                    )
                    await self.channel.send(user_id=notification.user_id, notification=rendered)
                except Exception as e:
                    Logger.base.warning(
                        f'📨 [NOTIFY] Delivery of {notification.type} {notification.id} failed: {e}'
                    )
                    updated = notification.mark_attempt_failed(
                        error=str(e), max_attempts=self.max_attempts
                    )
                    failed += 1
                else:
                    updated = notification.mark_sent(now=now)
                    sent += 1
                await uow.notification_repo.update(notification=updated)
            await uow.commit()

        return DispatchResult(sent=sent, failed=failed)
