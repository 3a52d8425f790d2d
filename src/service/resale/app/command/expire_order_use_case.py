from datetime import datetime, timezone
from uuid import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.command.order_state_machine import OrderStateMachine
from src.service.resale.app.interface.i_notification_publisher import INotificationPublisher
from src.service.resale.domain.enum.payment_status import PaymentStatus


class ExpireOrderUseCase:
    """Expire one lapsed pending order; re-checks everything under the order lock"""

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        order_state_machine: OrderStateMachine,
        notification_publisher: INotificationPublisher,
    ) -> None:
        self.uow_factory = uow_factory
        self.order_state_machine = order_state_machine
        self.notification_publisher = notification_publisher

    @Logger.io
    async def execute(self, *, order_id: UUID, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            order = await uow.order_repo.get_by_id_for_update(order_id=order_id)
            if not order or not order.is_pending or not order.reservation_lapsed(now=now):
                return False

            payments = await uow.payment_repo.list_by_order(order_id=order_id)
            if any(p.status == PaymentStatus.SUCCEEDED for p in payments):
                # Confirmation will pick this order up (or flag it), never expire paid money
                Logger.base.warning(f'⏰ [EXPIRE] Order {order_id} has a succeeded payment, skipped')
                return False

            transition = await self.order_state_machine.expire(uow=uow, order=order, now=now)
            if transition is None:
                return False
            await uow.commit()

        await self.notification_publisher.publish(events=transition.notifications)
        return True
