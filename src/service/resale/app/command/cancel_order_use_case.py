from datetime import datetime, timezone
from uuid import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import NotFoundError, UnauthorizedError
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.command.order_state_machine import OrderStateMachine
from src.service.resale.domain.entity.order_entity import Order


class CancelOrderUseCase:
    """Buyer gives up a pending order; cancelling a finished order changes nothing"""

    def __init__(
        self, *, uow_factory: UnitOfWorkFactory, order_state_machine: OrderStateMachine
    ) -> None:
        self.uow_factory = uow_factory
        self.order_state_machine = order_state_machine

    @Logger.io
    async def execute(
        self, *, order_id: UUID, buyer_user_id: str, now: datetime | None = None
    ) -> Order:
        now = now or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            order = await uow.order_repo.get_by_id_for_update(order_id=order_id)
            if not order:
                raise NotFoundError('Order not found')
            if order.buyer_user_id != buyer_user_id:
                raise UnauthorizedError('Only the buyer can cancel this order')

            transition = await self.order_state_machine.cancel(uow=uow, order=order, now=now)
            if transition is None:
                return order
            await uow.commit()
        return transition.order
