from abc import ABC, abstractmethod
from uuid import UUID

from src.service.resale.domain.entity.event_entity import Event, TicketWave


class IEventQueryRepo(ABC):
    """Read access to events and ticket waves owned by the catalog"""

    @abstractmethod
    async def get_event(self, *, event_id: UUID) -> Event | None:
        pass

    @abstractmethod
    async def get_ticket_wave(self, *, ticket_wave_id: UUID) -> TicketWave | None:
        pass
