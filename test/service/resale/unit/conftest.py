"""
Unit test configuration for the resale service.

Every use case runs against the in-memory unit of work; providers, publishers
and channels are recording doubles. No database or network is touched.
"""

import pytest

from src.service.resale.app.command.create_order_use_case import CreateOrderUseCase
from src.service.resale.app.command.order_state_machine import OrderStateMachine
from src.service.resale.app.command.ticket_allocator import TicketAllocator
from src.service.resale.domain.value_object.marketplace_config import MarketplaceConfig
from src.service.resale.driven_adapter.payment_provider.payment_provider_factory import (
    PaymentProviderFactory,
)
from test.service.resale.unit.fake_unit_of_work import InMemoryStore, fake_uow_factory
from test.service.resale.unit.helpers import (
    FakePaymentProvider,
    RecordingChannel,
    RecordingPublisher,
    make_event,
)


@pytest.fixture
async def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store: InMemoryStore):
    return fake_uow_factory(store)


@pytest.fixture
def config() -> MarketplaceConfig:
    return MarketplaceConfig()


@pytest.fixture
def allocator(config: MarketplaceConfig) -> TicketAllocator:
    return TicketAllocator(config=config)


@pytest.fixture
def state_machine(config: MarketplaceConfig) -> OrderStateMachine:
    return OrderStateMachine(config=config)


@pytest.fixture
def provider() -> FakePaymentProvider:
    return FakePaymentProvider()


@pytest.fixture
def provider_factory(provider: FakePaymentProvider) -> PaymentProviderFactory:
    return PaymentProviderFactory(providers=[provider])


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def event_and_wave(store: InMemoryStore):
    event, wave = make_event()
    store.add_event(event, wave)
    return event, wave


@pytest.fixture
def create_order(uow_factory, allocator: TicketAllocator, config: MarketplaceConfig):
    return CreateOrderUseCase(uow_factory=uow_factory, allocator=allocator, config=config)
