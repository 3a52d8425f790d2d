from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.resale.domain.entity.event_entity import Event, TicketWave
from src.service.resale.driven_adapter.model.event_model import EventModel, TicketWaveModel


class EventQueryRepoImpl(IEventQueryRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def get_event(self, *, event_id: UUID) -> Event | None:
        result = await self.session.execute(select(EventModel).where(EventModel.id == event_id))
        db_event = result.scalar_one_or_none()
        if not db_event:
            return None
        return Event(id=db_event.id, name=db_event.name, end_date=db_event.end_date)

    @Logger.io
    async def get_ticket_wave(self, *, ticket_wave_id: UUID) -> TicketWave | None:
        result = await self.session.execute(
            select(TicketWaveModel).where(TicketWaveModel.id == ticket_wave_id)
        )
        db_wave = result.scalar_one_or_none()
        if not db_wave:
            return None
        return TicketWave(
            id=db_wave.id,
            event_id=db_wave.event_id,
            name=db_wave.name,
            face_value=db_wave.face_value,
            currency=db_wave.currency,
        )
