from uuid import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import NotFoundError, UnauthorizedError
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.dto.order_dto import OrderDetails


class GetOrderUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    async def execute(self, *, order_id: UUID, user_id: str) -> OrderDetails:
        async with self.uow_factory() as uow:
            order = await uow.order_repo.get_by_id(order_id=order_id)
            if not order:
                raise NotFoundError('Order not found')
            if order.buyer_user_id != user_id:
                raise UnauthorizedError('Only the buyer can view this order')

            payments = await uow.payment_repo.list_by_order(order_id=order_id)
        return OrderDetails(order=order, payments=payments)
