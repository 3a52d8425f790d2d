from typing import List

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_notification_repo import INotificationRepo
from src.service.resale.domain.entity.notification_entity import Notification
from src.service.resale.domain.enum.notification_type import NotificationStatus, NotificationType
from src.service.resale.driven_adapter.model.notification_model import NotificationModel


class NotificationRepoImpl(INotificationRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def create_many(self, *, notifications: List[Notification]) -> None:
        if not notifications:
            return
        await self.session.execute(
            insert(NotificationModel),
            [
                {
                    'id': n.id,
                    'user_id': n.user_id,
                    'type': n.type.value,
                    'payload': n.payload,
                    'status': n.status.value,
                    'attempts': n.attempts,
                    'last_error': n.last_error,
                    'created_at': n.created_at,
                    'sent_at': n.sent_at,
                }
                for n in notifications
            ],
        )

    @Logger.io
    async def list_pending_for_update(self, *, limit: int) -> List[Notification]:
        result = await self.session.execute(
            select(NotificationModel)
            .where(NotificationModel.status == NotificationStatus.PENDING.value)
            .order_by(NotificationModel.created_at)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        return [
            Notification(
                id=row.id,
                user_id=row.user_id,
                type=NotificationType(row.type),
                payload=row.payload,
                status=NotificationStatus(row.status),
                attempts=row.attempts,
                last_error=row.last_error,
                created_at=row.created_at,
                sent_at=row.sent_at,
            )
            for row in result.scalars().all()
        ]

    @Logger.io
    async def update(self, *, notification: Notification) -> None:
        await self.session.execute(
            update(NotificationModel)
            .where(NotificationModel.id == notification.id)
            .values(
                status=notification.status.value,
                attempts=notification.attempts,
                last_error=notification.last_error,
                sent_at=notification.sent_at,
            )
        )
