from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.command.cancel_listing_use_case import CancelListingUseCase
from src.service.resale.app.command.create_listing_use_case import CreateListingUseCase
from src.service.resale.driving_adapter.http_controller.auth.current_user import (
    get_current_user_id,
)
from src.service.resale.driving_adapter.http_controller.schema.listing_schema import (
    ListingCreateRequest,
    ListingResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
@inject
async def create_listing(
    request: ListingCreateRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: CreateListingUseCase = Depends(Provide[Container.create_listing_use_case]),
) -> ListingResponse:
    with tracer.start_as_current_span('controller.create_listing') as span:
        span.set_attribute('event.id', str(request.event_id))
        span.set_attribute('listing.quantity', request.quantity)

        listing = await use_case.execute(
            publisher_user_id=user_id,
            event_id=request.event_id,
            ticket_wave_id=request.ticket_wave_id,
            quantity=request.quantity,
            price=request.price,
        )
        return ListingResponse.from_entity(listing)


@router.delete('/{listing_id}')
@Logger.io
@inject
async def cancel_listing(
    listing_id: UUID,
    user_id: str = Depends(get_current_user_id),
    use_case: CancelListingUseCase = Depends(Provide[Container.cancel_listing_use_case]),
) -> ListingResponse:
    listing = await use_case.execute(listing_id=listing_id, user_id=user_id)
    return ListingResponse.from_entity(listing)
