"""
dLocal Go payment provider

Only talks to the dLocal API: no business rules live here. Statuses are
normalised into ProviderPaymentData before leaving the adapter.
"""

import hashlib
import hmac
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

import httpx

from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_payment_provider import (
    CreatePaymentParams,
    IPaymentProvider,
    ProviderPayment,
    ProviderPaymentData,
)
from src.service.resale.domain.enum.payment_status import (
    PaymentProviderType,
    ProviderPaymentStatus,
)
from src.service.resale.domain.resale_errors import PaymentProviderError


_STATUS_MAP: dict[str, ProviderPaymentStatus] = {
    'PENDING': ProviderPaymentStatus.PENDING,
    'PAID': ProviderPaymentStatus.PAID,
    'REJECTED': ProviderPaymentStatus.FAILED,
    'CANCELLED': ProviderPaymentStatus.CANCELLED,
    'EXPIRED': ProviderPaymentStatus.EXPIRED,
}

# "V2-HMAC-SHA256, Signature: <hex>"
_SIGNATURE_PATTERN = re.compile(r'Signature:\s*([a-f0-9]+)', re.IGNORECASE)


def normalize_status(dlocal_status: str | None) -> ProviderPaymentStatus:
    return _STATUS_MAP.get((dlocal_status or '').upper(), ProviderPaymentStatus.PENDING)


def _parse_amount(raw: Any) -> Decimal | None:
    # JSON numbers arrive as floats; go through str so 2575.68 stays 2575.68
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        Logger.base.warning(f'💳 [DLOCAL] Unparseable amount {raw!r}')
        return None


def _parse_datetime(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace('Z', '+00:00'))
    except ValueError:
        return None


class DLocalPaymentProvider(IPaymentProvider):
    name = PaymentProviderType.DLOCAL

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        secret_key: str,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._api_key = api_key
        self._secret_key = secret_key
        self._timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={
                'Content-Type': 'application/json',
                'Authorization': f'Bearer {self._api_key}:{self._secret_key}',
            },
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            Logger.base.error(
                f'💳 [DLOCAL] {method} {path} failed with {e.response.status_code}: {e.response.text}'
            )
            raise PaymentProviderError(
                f'dLocal returned {e.response.status_code} for {method} {path}'
            ) from e
        except httpx.HTTPError as e:
            Logger.base.error(f'💳 [DLOCAL] {method} {path} transport error: {e!r}')
            raise PaymentProviderError(f'dLocal unreachable: {type(e).__name__}') from e
        except ValueError as e:
            raise PaymentProviderError('dLocal returned a non-JSON response') from e

    @Logger.io
    async def create_payment(self, *, params: CreatePaymentParams) -> ProviderPayment:
        body: dict[str, Any] = {
            'amount': float(Decimal(params.amount)),
            'currency': params.currency,
            'order_id': str(params.order_id),
            'description': params.description,
        }
        optional = {
            'country': params.country,
            'success_url': params.success_url,
            'back_url': params.back_url,
            'notification_url': params.notification_url,
        }
        body |= {key: value for key, value in optional.items() if value}

        data = await self._request('POST', '/v1/payments', json=body)
        provider_payment_id = data.get('id')
        if not provider_payment_id:
            raise PaymentProviderError('dLocal payment response has no id')

        Logger.base.info(
            f'💳 [DLOCAL] Created payment {provider_payment_id} for order {params.order_id}'
        )
        return ProviderPayment(
            provider_payment_id=str(provider_payment_id),
            redirect_url=data.get('redirect_url'),
            status=normalize_status(data.get('status')),
        )

    @Logger.io
    async def get_status(self, *, provider_payment_id: str) -> ProviderPaymentData:
        data = await self._request('GET', f'/v1/payments/{provider_payment_id}')
        return ProviderPaymentData(
            status=normalize_status(data.get('status')),
            amount=_parse_amount(data.get('amount')),
            currency=data.get('currency'),
            approved_at=_parse_datetime(data.get('approved_date')),
            rejected_reason=data.get('rejected_reason') or data.get('status_detail'),
        )

    def sign(self, raw_body: bytes) -> str:
        message = self._api_key.encode() + raw_body
        return hmac.new(self._secret_key.encode(), message, hashlib.sha256).hexdigest()

    def verify_webhook_signature(self, *, raw_body: bytes, headers: Mapping[str, str]) -> bool:
        auth_header = headers.get('authorization') or headers.get('Authorization')
        if not auth_header:
            Logger.base.warning('💳 [DLOCAL] Webhook without Authorization header')
            return False

        match = _SIGNATURE_PATTERN.search(auth_header)
        if not match:
            Logger.base.warning('💳 [DLOCAL] Webhook Authorization header has no signature')
            return False

        if not hmac.compare_digest(match.group(1).lower(), self.sign(raw_body)):
            Logger.base.warning('💳 [DLOCAL] Webhook signature mismatch')
            return False
        return True
