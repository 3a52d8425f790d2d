from datetime import datetime, timezone
from uuid import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_notification_publisher import INotificationPublisher
from src.service.resale.domain.domain_event.notification_event import PayoutFailed
from src.service.resale.domain.entity.seller_earning_entity import Payout


class FailPayoutUseCase:
    """
    Payout rejected by the bank: the payout is failed, its earnings are closed as
    ``failed_payout`` and an ``available`` copy of each is created so the seller
    can request again.
    """

    def __init__(
        self, *, uow_factory: UnitOfWorkFactory, notification_publisher: INotificationPublisher
    ) -> None:
        self.uow_factory = uow_factory
        self.notification_publisher = notification_publisher

    @Logger.io
    async def execute(self, *, payout_id: UUID, reason: str, now: datetime | None = None) -> Payout:
        now = now or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            payout = await uow.payout_repo.get_by_id_for_update(payout_id=payout_id)
            if not payout:
                raise NotFoundError('Payout not found')

            failed = payout.fail(reason=reason, now=now)
            earnings = await uow.seller_earning_repo.list_by_payout(payout_id=payout_id)
            await uow.payout_repo.update(payout=failed)
            await uow.seller_earning_repo.update_many(
                earnings=[earning.mark_failed_payout(now=now) for earning in earnings]
            )
            await uow.seller_earning_repo.create_many(
                earnings=[earning.clone_as_available(now=now) for earning in earnings]
            )
            await uow.commit()

        Logger.base.warning(
            f'🏦 [PAYOUT] Payout {payout_id} failed ({reason}); '
            f'{len(earnings)} earning(s) available again'
        )
        await self.notification_publisher.publish(
            events=[
                PayoutFailed(
                    user_id=failed.seller_user_id,
                    payout_id=failed.id,
                    amount=failed.amount,
                    currency=failed.currency,
                    failure_reason=reason,
                )
            ]
        )
        return failed
