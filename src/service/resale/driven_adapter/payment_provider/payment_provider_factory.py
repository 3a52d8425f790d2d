from typing import Iterable

from src.platform.exception.exceptions import NotFoundError
from src.service.resale.app.interface.i_payment_provider import (
    IPaymentProvider,
    IPaymentProviderFactory,
)
from src.service.resale.domain.enum.payment_status import PaymentProviderType


class PaymentProviderFactory(IPaymentProviderFactory):
    """Dispatches on the provider tag stored with each payment"""

    def __init__(
        self,
        *,
        providers: Iterable[IPaymentProvider],
        default_provider: PaymentProviderType = PaymentProviderType.DLOCAL,
    ) -> None:
        self._providers = {provider.name: provider for provider in providers}
        if default_provider not in self._providers:
            raise ValueError(f'Default payment provider {default_provider} is not registered')
        self._default_provider = default_provider

    def get(self, provider: PaymentProviderType) -> IPaymentProvider:
        try:
            return self._providers[provider]
        except KeyError:
            raise NotFoundError(f'Unsupported payment provider: {provider}') from None

    @property
    def default_provider(self) -> PaymentProviderType:
        return self._default_provider
