from datetime import datetime, timezone
from uuid import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import ConflictError, NotFoundError, UnauthorizedError
from src.platform.logging.loguru_io import Logger
from src.service.resale.domain.entity.listing_entity import Listing


class CancelListingUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    async def execute(
        self, *, listing_id: UUID, user_id: str, now: datetime | None = None
    ) -> Listing:
        now = now or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            listing = await uow.listing_repo.get_by_id(listing_id=listing_id)
            if not listing or listing.deleted_at is not None:
                raise NotFoundError('Listing not found')
            if listing.publisher_user_id != user_id:
                raise UnauthorizedError('Only the publisher can cancel this listing')
            # Lapsed holds count too: their order can still be paid until it is swept
            if await uow.reservation_repo.has_unreleased_for_listing(listing_id=listing_id):
                raise ConflictError('Some tickets of this listing are reserved by a pending order')

            cancelled = listing.cancel(now=now)
            await uow.listing_repo.cancel(listing=cancelled)
            await uow.commit()

        Logger.base.info(f'🏷️ [LISTING] Cancelled listing {listing_id}')
        return cancelled
