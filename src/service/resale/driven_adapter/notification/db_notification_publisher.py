from datetime import datetime, timezone
from typing import Sequence

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_notification_publisher import INotificationPublisher
from src.service.resale.domain.domain_event.notification_event import NotificationEvent
from src.service.resale.domain.entity.notification_entity import Notification


class DbNotificationPublisher(INotificationPublisher):
    """
    Stores notifications as pending rows; the dispatch job delivers them.

    Runs in its own transaction after the producing one committed, so a failure
    here is logged and swallowed instead of surfacing to the caller.
    """

    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    async def publish(self, *, events: Sequence[NotificationEvent]) -> None:
        if not events:
            return
        now = datetime.now(timezone.utc)
        notifications = [Notification.from_event(event, now=now) for event in events]
        try:
            async with self.uow_factory() as uow:
                await uow.notification_repo.create_many(notifications=notifications)
                await uow.commit()
        except Exception as e:
            Logger.base.error(
                f'📣 [NOTIFY] Failed to store {len(notifications)} notification(s) '
                f'{[n.type.value for n in notifications]}: {e!r}'
            )
            return

        Logger.base.info(
            f'📣 [NOTIFY] Queued {", ".join(n.type.value for n in notifications)}'
        )
