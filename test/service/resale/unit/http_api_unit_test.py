"""
HTTP API tests

The real FastAPI app with the DI container pointed at the in-memory store and
the recording payment provider. Requests go through httpx's ASGI transport.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from dependency_injector import providers
from fastapi import FastAPI
import httpx
import pytest

from src.platform.app_factory import create_app
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.service.resale.domain.enum.payment_status import ProviderPaymentStatus
from test.service.resale.unit.fake_unit_of_work import FakeUnitOfWork
from test.service.resale.unit.helpers import BUYER, SELLER, make_event


JOB_HEADERS = {'X-Job-Token': 'test_job_trigger_token'}


@asynccontextmanager
async def _no_lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield


@pytest.fixture
async def client(store, provider_factory) -> AsyncIterator[httpx.AsyncClient]:
    container.uow_factory.override(providers.Factory(FakeUnitOfWork, store=store))
    container.payment_provider_factory.override(providers.Object(provider_factory))
    container.reset_singletons()
    container.wire(modules=WIRE_MODULES)
    app = create_app(lifespan=_no_lifespan, title_suffix=' (Test)')

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url='http://test'
    ) as http_client:
        yield http_client

    container.unwire()
    container.uow_factory.reset_override()
    container.payment_provider_factory.reset_override()
    container.reset_singletons()


@pytest.fixture
def live_event(store):
    event, wave = make_event(end_date=datetime.now(timezone.utc) + timedelta(days=30))
    store.add_event(event, wave)
    return event, wave


class TestPurchaseOverHttp:
    @pytest.mark.asyncio
    async def test_list_buy_pay_and_confirm(self, client, store, provider, live_event):
        """
        Given: A seller lists 3 tickets at 800
        When: A buyer orders them, opens a payment link and dLocal calls the webhook
        Then: The order is confirmed with a succeeded payment; the seller has pending earnings
        """
        # Arrange
        event, wave = live_event
        listing = await client.post(
            '/api/listings',
            json={
                'event_id': str(event.id),
                'ticket_wave_id': str(wave.id),
                'quantity': 3,
                'price': '800.00',
            },
            headers={'X-User-Id': SELLER},
        )
        assert listing.status_code == 201

        # Act
        created = await client.post(
            '/api/orders',
            json={
                'event_id': str(event.id),
                'items': [{'ticket_wave_id': str(wave.id), 'price': '800.00', 'quantity': 3}],
            },
            headers={'X-User-Id': BUYER},
        )
        order_id = created.json()['id']
        link = await client.post(
            f'/api/orders/{order_id}/payment-link', headers={'X-User-Id': BUYER}
        )
        provider_payment_id = link.json()['provider_payment_id']
        provider.statuses[provider_payment_id] = ProviderPaymentStatus.PAID
        webhook = await client.post(
            '/api/webhooks/dlocal', content=f'{{"payment_id": "{provider_payment_id}"}}'
        )
        order = await client.get(f'/api/orders/{order_id}', headers={'X-User-Id': BUYER})
        balance = await client.get('/api/earnings/balance', headers={'X-User-Id': SELLER})

        # Assert
        assert created.status_code == 201
        assert created.json()['status'] == 'pending'
        assert created.json()['total_amount'] == '2575.68'
        assert link.status_code == 201
        assert webhook.status_code == 200
        assert webhook.json() == {'status': 'ok'}
        assert order.json()['status'] == 'confirmed'
        assert [p['status'] for p in order.json()['payments']] == ['succeeded']
        assert balance.status_code == 200
        assert len(store.earnings) == 3


class TestHttpErrors:
    @pytest.mark.asyncio
    async def test_missing_user_header(self, client):
        response = await client.get('/api/earnings/balance')

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_insufficient_inventory_is_conflict(self, client, live_event):
        event, wave = live_event

        response = await client.post(
            '/api/orders',
            json={
                'event_id': str(event.id),
                'items': [{'ticket_wave_id': str(wave.id), 'price': '800.00', 'quantity': 1}],
            },
            headers={'X-User-Id': BUYER},
        )

        assert response.status_code == 409
        body = response.json()
        assert 'Only 0 ticket(s) available' in body['detail']
        assert body['code'] == 'insufficient_inventory'
        assert (body['available'], body['requested'], body['price']) == (0, 1, '800.00')

    @pytest.mark.asyncio
    async def test_invalid_webhook_signature(self, client, provider):
        provider.signature_valid = False

        response = await client.post('/api/webhooks/dlocal', content=b'{"payment_id": "DL-1"}')

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_job_trigger_requires_token(self, client):
        response = await client.post('/api/jobs/dispatch_notifications')

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_job_trigger_runs_job(self, client):
        response = await client.post('/api/jobs/check_hold_periods', headers=JOB_HEADERS)

        assert response.status_code == 200
        assert response.json() == {
            'job': 'check_hold_periods',
            'result': {'released': 0, 'retained': 0},
        }

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get('/health')

        assert response.json()['status'] == 'healthy'
