"""
Unit of Work Pattern - one database transaction shared by the resale repositories

Architecture:
- UoW owns the session lifecycle (opened on enter, closed on exit)
- UoW owns commit/rollback; leaving the block without commit() rolls back
- Repositories get the shared session from the UoW
- Use cases coordinate several repositories inside one UoW

Jobs and the reconciliation engine need one transaction per item, so use cases
receive a ``uow_factory`` and open a fresh unit for every transaction.
"""

from __future__ import annotations

import abc
from contextlib import AbstractAsyncContextManager, AsyncExitStack
from typing import TYPE_CHECKING, Callable

from sqlalchemy.ext.asyncio import AsyncSession


if TYPE_CHECKING:
    from src.service.resale.app.interface.i_event_query_repo import IEventQueryRepo
    from src.service.resale.app.interface.i_listing_repo import IListingRepo
    from src.service.resale.app.interface.i_notification_repo import INotificationRepo
    from src.service.resale.app.interface.i_order_repo import IOrderRepo
    from src.service.resale.app.interface.i_payment_repo import IPaymentEventRepo, IPaymentRepo
    from src.service.resale.app.interface.i_reservation_repo import IReservationRepo
    from src.service.resale.app.interface.i_seller_earning_repo import (
        IPayoutRepo,
        ISellerEarningRepo,
    )


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for the resale service

    Usage:
        async with uow_factory() as uow:
            order = await uow.order_repo.get_by_id_for_update(order_id=...)
            await uow.order_repo.update(order=order.expire(now=now))
            await uow.commit()
    """

    event_query_repo: IEventQueryRepo
    listing_repo: IListingRepo
    reservation_repo: IReservationRepo
    order_repo: IOrderRepo
    payment_repo: IPaymentRepo
    payment_event_repo: IPaymentEventRepo
    seller_earning_repo: ISellerEarningRepo
    payout_repo: IPayoutRepo
    notification_repo: INotificationRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        """Commit the transaction"""
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    SQLAlchemy implementation of Unit of Work

    Usage in use case:
        async with self.uow_factory() as uow:
            await uow.order_repo.create(order=order)
            await uow.commit()
    """

    def __init__(
        self, *, session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]]
    ) -> None:
        self._session_factory = session_factory
        self._exit_stack: AsyncExitStack | None = None
        self.session: AsyncSession | None = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        from src.service.resale.driven_adapter.repo.event_query_repo_impl import (
            EventQueryRepoImpl,
        )
        from src.service.resale.driven_adapter.repo.listing_repo_impl import ListingRepoImpl
        from src.service.resale.driven_adapter.repo.notification_repo_impl import (
            NotificationRepoImpl,
        )
        from src.service.resale.driven_adapter.repo.order_repo_impl import OrderRepoImpl
        from src.service.resale.driven_adapter.repo.payment_repo_impl import (
            PaymentEventRepoImpl,
            PaymentRepoImpl,
        )
        from src.service.resale.driven_adapter.repo.reservation_repo_impl import (
            ReservationRepoImpl,
        )
        from src.service.resale.driven_adapter.repo.seller_earning_repo_impl import (
            PayoutRepoImpl,
            SellerEarningRepoImpl,
        )

        self._exit_stack = AsyncExitStack()
        self.session = await self._exit_stack.enter_async_context(self._session_factory())

        # Repositories share the unit's session
        self.event_query_repo = EventQueryRepoImpl(session=self.session)
        self.listing_repo = ListingRepoImpl(session=self.session)
        self.reservation_repo = ReservationRepoImpl(session=self.session)
        self.order_repo = OrderRepoImpl(session=self.session)
        self.payment_repo = PaymentRepoImpl(session=self.session)
        self.payment_event_repo = PaymentEventRepoImpl(session=self.session)
        self.seller_earning_repo = SellerEarningRepoImpl(session=self.session)
        self.payout_repo = PayoutRepoImpl(session=self.session)
        self.notification_repo = NotificationRepoImpl(session=self.session)

        await super().__aenter__()
        return self

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self._exit_stack is not None:
                await self._exit_stack.aclose()
            self._exit_stack = None
            self.session = None

    async def _commit(self) -> None:
        assert self.session is not None, 'UnitOfWork used outside of async with'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
