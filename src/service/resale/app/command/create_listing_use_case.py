from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.resale.domain.entity.listing_entity import Listing
from src.service.resale.domain.value_object.fee_breakdown import to_money
from src.service.resale.domain.value_object.marketplace_config import MarketplaceConfig


class CreateListingUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory, config: MarketplaceConfig) -> None:
        self.uow_factory = uow_factory
        self.config = config

    @Logger.io
    async def execute(
        self,
        *,
        publisher_user_id: str,
        event_id: UUID,
        ticket_wave_id: UUID,
        quantity: int,
        price: Decimal,
        now: datetime | None = None,
    ) -> Listing:
        now = now or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            event = await uow.event_query_repo.get_event(event_id=event_id)
            if not event:
                raise NotFoundError('Event not found')
            wave = await uow.event_query_repo.get_ticket_wave(ticket_wave_id=ticket_wave_id)
            if not wave:
                raise NotFoundError('Ticket wave not found')

            listing = Listing.create(
                publisher_user_id=publisher_user_id,
                event=event,
                ticket_wave=wave,
                quantity=quantity,
                price=to_money(price),
                max_quantity=self.config.max_tickets_per_order,
                now=now,
            )
            await uow.listing_repo.create(listing=listing)
            await uow.commit()

        Logger.base.info(
            f'🏷️ [LISTING] {publisher_user_id} listed {quantity} ticket(s) of {wave.name} '
            f'at {listing.tickets[0].price} {listing.currency}'
        )
        return listing
