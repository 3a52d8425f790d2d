from enum import StrEnum


class PaymentProviderType(StrEnum):
    DLOCAL = 'dlocal'


class ProviderPaymentStatus(StrEnum):
    """Provider status after normalisation by the provider adapter"""

    PENDING = 'pending'
    PROCESSING = 'processing'
    PAID = 'paid'
    FAILED = 'failed'
    CANCELLED = 'cancelled'
    EXPIRED = 'expired'


class PaymentStatus(StrEnum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'

    @property
    def is_settled(self) -> bool:
        return self in (PaymentStatus.SUCCEEDED, PaymentStatus.FAILED)

    @classmethod
    def from_provider(cls, provider_status: ProviderPaymentStatus) -> 'PaymentStatus':
        match provider_status:
            case ProviderPaymentStatus.PAID:
                return cls.SUCCEEDED
            case (
                ProviderPaymentStatus.FAILED
                | ProviderPaymentStatus.CANCELLED
                | ProviderPaymentStatus.EXPIRED
            ):
                return cls.FAILED
            case ProviderPaymentStatus.PROCESSING:
                return cls.PROCESSING
            case ProviderPaymentStatus.PENDING:
                return cls.PENDING


class PaymentEventType(StrEnum):
    PAYMENT_CREATED = 'payment_created'
    STATUS_CHANGE = 'status_change'
    WEBHOOK_RECEIVED = 'webhook_received'
    STATUS_SYNCED = 'status_synced'
    AMOUNT_MISMATCH = 'amount_mismatch'
    MANUAL_REVIEW_REQUIRED = 'manual_review_required'


class ReconciliationSource(StrEnum):
    WEBHOOK = 'webhook'
    POLL = 'poll'

    @property
    def audit_event_type(self) -> PaymentEventType:
        if self is ReconciliationSource.WEBHOOK:
            return PaymentEventType.WEBHOOK_RECEIVED
        return PaymentEventType.STATUS_SYNCED
