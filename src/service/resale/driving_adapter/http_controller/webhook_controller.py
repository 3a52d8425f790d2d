from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, BackgroundTasks, Depends, Request
import orjson

from src.platform.config.di import Container
from src.platform.exception.exceptions import AuthenticationError, ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.command.process_provider_event_use_case import (
    ProcessProviderEventUseCase,
)
from src.service.resale.app.interface.i_payment_provider import IPaymentProviderFactory
from src.service.resale.domain.enum.payment_status import (
    PaymentProviderType,
    ReconciliationSource,
)


router = APIRouter()


@Logger.io(reraise=False)
async def reconcile_in_background(
    *,
    use_case: ProcessProviderEventUseCase,
    provider: PaymentProviderType,
    provider_payment_id: str,
) -> None:
    await use_case.execute(
        provider=provider,
        provider_payment_id=provider_payment_id,
        source=ReconciliationSource.WEBHOOK,
    )


def parse_payment_id(raw_body: bytes) -> str:
    try:
        payload = orjson.loads(raw_body)
    except orjson.JSONDecodeError as e:
        raise ValidationError('Webhook body is not valid JSON') from e
    payment_id = payload.get('payment_id') if isinstance(payload, dict) else None
    if not payment_id:
        raise ValidationError('Webhook body has no payment_id')
    return str(payment_id)


@router.post('/{provider}')
@Logger.io
@inject
async def receive_webhook(
    provider: PaymentProviderType,
    request: Request,
    background_tasks: BackgroundTasks,
    provider_factory: IPaymentProviderFactory = Depends(
        Provide[Container.payment_provider_factory]
    ),
    use_case: ProcessProviderEventUseCase = Depends(
        Provide[Container.process_provider_event_use_case]
    ),
) -> dict[str, str]:
    """
    Acknowledge fast, reconcile later. The body only tells us which payment
    changed; its status is re-read from the provider during reconciliation.
    """
    raw_body = await request.body()
    if not provider_factory.get(provider).verify_webhook_signature(
        raw_body=raw_body, headers=request.headers
    ):
        raise AuthenticationError('Invalid webhook signature')

    provider_payment_id = parse_payment_id(raw_body)
    Logger.base.info(f'📬 [WEBHOOK] {provider} notified payment {provider_payment_id}')
    background_tasks.add_task(
        reconcile_in_background,
        use_case=use_case,
        provider=provider,
        provider_payment_id=provider_payment_id,
    )
    return {'status': 'ok'}
