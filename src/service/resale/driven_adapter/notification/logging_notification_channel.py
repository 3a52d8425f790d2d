from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_notification_publisher import INotificationChannel
from src.service.resale.domain.domain_event.notification_event import RenderedNotification


class LoggingNotificationChannel(INotificationChannel):
    """Default channel until an email/push provider is wired in"""

    async def send(self, *, user_id: str, notification: RenderedNotification) -> None:
        Logger.base.info(f'📨 [NOTIFY] to={user_id} | {notification.title} | {notification.body}')
