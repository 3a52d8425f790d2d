"""
Payment Reconciliation Engine

Webhooks and polling both land here with nothing but a provider payment id;
the provider's status API is the source of truth, the webhook body is never
trusted. Applying the same status twice is a no-op, so any number of
deliveries of the same event converge to one outcome.

Lock order: order row first, then payment row. Every flow that touches both
(confirm, expire, payment link) takes them in this order.
"""

from datetime import datetime, timezone
from typing import List

from opentelemetry import trace

from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.marketplace_metrics import metrics
from src.service.resale.app.command.order_state_machine import OrderStateMachine
from src.service.resale.app.dto.job_result import ReconciliationOutcome
from src.service.resale.app.interface.i_notification_publisher import INotificationPublisher
from src.service.resale.app.interface.i_payment_provider import (
    IPaymentProviderFactory,
    ProviderPaymentData,
)
from src.service.resale.domain.domain_event.notification_event import (
    NotificationEvent,
    PaymentFailed,
    PaymentSucceeded,
)
from src.service.resale.domain.entity.order_entity import Order
from src.service.resale.domain.entity.payment_entity import Payment, PaymentEvent
from src.service.resale.domain.enum.payment_status import (
    PaymentEventType,
    PaymentProviderType,
    PaymentStatus,
    ReconciliationSource,
)
from src.service.resale.domain.resale_errors import (
    PaymentAmountMismatchError,
    PaymentNotFoundError,
    ReservationLostError,
)


class ProcessProviderEventUseCase:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        provider_factory: IPaymentProviderFactory,
        order_state_machine: OrderStateMachine,
        notification_publisher: INotificationPublisher,
    ) -> None:
        self.uow_factory = uow_factory
        self.provider_factory = provider_factory
        self.order_state_machine = order_state_machine
        self.notification_publisher = notification_publisher
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(
        self,
        *,
        provider: PaymentProviderType,
        provider_payment_id: str,
        source: ReconciliationSource,
        now: datetime | None = None,
    ) -> ReconciliationOutcome:
        """
        Raises:
            PaymentNotFoundError: no payment with this provider id
            PaymentProviderError: the status API could not be reached
            PaymentAmountMismatchError: provider reports paid but amounts differ
        """
        with self.tracer.start_as_current_span(
            'use_case.process_provider_event',
            attributes={
                'payment.provider': provider,
                'payment.provider_payment_id': provider_payment_id,
                'reconciliation.source': source,
            },
        ):
            now = now or datetime.now(timezone.utc)
            async with self.uow_factory() as uow:
                known = await uow.payment_repo.get_by_provider_payment_id(
                    provider=provider, provider_payment_id=provider_payment_id
                )
            if not known:
                metrics.record_reconciliation(source=source, outcome='not_found')
                raise PaymentNotFoundError(provider_payment_id=provider_payment_id)

            # Network call outside any transaction
            reported = await self.provider_factory.get(provider).get_status(
                provider_payment_id=provider_payment_id
            )
            target = PaymentStatus.from_provider(reported.status)

            notifications: List[NotificationEvent] = []
            async with self.uow_factory() as uow:
                order = await uow.order_repo.get_by_id_for_update(order_id=known.order_id)
                payment = await uow.payment_repo.get_by_id_for_update(payment_id=known.id)
                if not order or not payment:
                    raise NotFoundError(f'Order of payment {known.id} not found')

                await uow.payment_event_repo.create(
                    event=PaymentEvent(
                        payment_id=payment.id,
                        event_type=source.audit_event_type,
                        from_status=payment.status,
                        to_status=target,
                        event_data={
                            'provider_status': str(reported.status),
                            'provider_amount': (
                                None if reported.amount is None else str(reported.amount)
                            ),
                            'provider_currency': reported.currency,
                            'rejected_reason': reported.rejected_reason,
                            'source': str(source),
                        },
                        created_at=now,
                    )
                )

                outcome = await self._apply(
                    uow=uow,
                    order=order,
                    payment=payment,
                    target=target,
                    reported=reported,
                    now=now,
                    notifications=notifications,
                )
                await uow.commit()

            if notifications:
                await self.notification_publisher.publish(events=notifications)
            metrics.record_reconciliation(source=source, outcome=outcome)
            Logger.base.info(
                f'💳 [RECONCILE] {provider}:{provider_payment_id} via {source} '
                f'-> {reported.status} ({outcome})'
            )
            return outcome

    async def _apply(
        self,
        *,
        uow: AbstractUnitOfWork,
        order: Order,
        payment: Payment,
        target: PaymentStatus,
        reported: ProviderPaymentData,
        now: datetime,
        notifications: List[NotificationEvent],
    ) -> ReconciliationOutcome:
        if payment.status == target:
            return ReconciliationOutcome.UNCHANGED
        if not payment.can_transition_to(target):
            Logger.base.warning(
                f'💳 [RECONCILE] Payment {payment.id} is {payment.status}, ignoring {target}'
            )
            return ReconciliationOutcome.IGNORED

        if target == PaymentStatus.SUCCEEDED:
            return await self._apply_success(
                uow=uow,
                order=order,
                payment=payment,
                reported=reported,
                now=now,
                notifications=notifications,
            )

        updated = payment.transition_to(target, now=now)
        await uow.payment_repo.update(payment=updated)
        await self._record_status_change(uow=uow, before=payment, after=updated, now=now)

        if target == PaymentStatus.FAILED:
            # The order stays pending so the buyer can retry inside the window.
            # A stale attempt on an already settled order is not worth a notice.
            if order.is_pending:
                notifications.append(
                    PaymentFailed(
                        user_id=order.buyer_user_id, order_id=order.id, payment_id=payment.id
                    )
                )
            return ReconciliationOutcome.FAILED
        return ReconciliationOutcome.UPDATED

    async def _apply_success(
        self,
        *,
        uow: AbstractUnitOfWork,
        order: Order,
        payment: Payment,
        reported: ProviderPaymentData,
        now: datetime,
        notifications: List[NotificationEvent],
    ) -> ReconciliationOutcome:
        # The charged amount comes from the provider; the local row only echoes what we asked for
        if not reported.charged_matches(amount=order.total_amount, currency=order.currency):
            await uow.payment_event_repo.create(
                event=PaymentEvent(
                    payment_id=payment.id,
                    event_type=PaymentEventType.AMOUNT_MISMATCH,
                    from_status=payment.status,
                    to_status=PaymentStatus.SUCCEEDED,
                    event_data={
                        'paid_amount': None if reported.amount is None else str(reported.amount),
                        'paid_currency': reported.currency,
                        'order_total': str(order.total_amount),
                        'order_currency': order.currency,
                    },
                    created_at=now,
                )
            )
            # Keep the audit trail even though the caller sees an error
            await uow.commit()
            Logger.base.error(
                f'💳 [RECONCILE] Amount mismatch on payment {payment.id}: provider charged '
                f'{reported.amount} {reported.currency} vs order '
                f'{order.total_amount} {order.currency}'
            )
            raise PaymentAmountMismatchError(
                payment_id=payment.id, paid=reported.amount, expected=order.total_amount
            )

        succeeded = payment.transition_to(PaymentStatus.SUCCEEDED, now=now)

        if not order.is_pending:
            # Late success for an expired/cancelled order, or a second success for a confirmed one
            await self._flag_for_manual_review(
                uow=uow,
                payment=succeeded,
                previous=payment,
                reason=f'order is {order.status}',
                now=now,
            )
            return ReconciliationOutcome.MANUAL_REVIEW

        try:
            transition = await self.order_state_machine.confirm(uow=uow, order=order, now=now)
        except ReservationLostError as e:
            await self._flag_for_manual_review(
                uow=uow, payment=succeeded, previous=payment, reason=str(e), now=now
            )
            await self.order_state_machine.expire(uow=uow, order=order, now=now, notify=False)
            return ReconciliationOutcome.MANUAL_REVIEW

        await uow.payment_repo.update(payment=succeeded)
        await self._record_status_change(uow=uow, before=payment, after=succeeded, now=now)
        notifications.append(
            PaymentSucceeded(
                user_id=order.buyer_user_id,
                order_id=order.id,
                payment_id=payment.id,
                amount=payment.amount,
                currency=payment.currency,
            )
        )
        notifications.extend(transition.notifications)
        return ReconciliationOutcome.CONFIRMED

    async def _flag_for_manual_review(
        self,
        *,
        uow: AbstractUnitOfWork,
        payment: Payment,
        previous: Payment,
        reason: str,
        now: datetime,
    ) -> None:
        flagged = payment.flag_for_manual_review(now=now)
        await uow.payment_repo.update(payment=flagged)
        await self._record_status_change(uow=uow, before=previous, after=flagged, now=now)
        await uow.payment_event_repo.create(
            event=PaymentEvent(
                payment_id=payment.id,
                event_type=PaymentEventType.MANUAL_REVIEW_REQUIRED,
                from_status=previous.status,
                to_status=flagged.status,
                event_data={'order_id': str(payment.order_id), 'reason': reason},
                created_at=now,
            )
        )
        Logger.base.error(
            f'🚨 [RECONCILE] Payment {payment.id} succeeded but cannot confirm order '
            f'{payment.order_id} ({reason}); flagged for manual review'
        )

    @staticmethod
    async def _record_status_change(
        *, uow: AbstractUnitOfWork, before: Payment, after: Payment, now: datetime
    ) -> None:
        await uow.payment_event_repo.create(
            event=PaymentEvent(
                payment_id=after.id,
                event_type=PaymentEventType.STATUS_CHANGE,
                from_status=before.status,
                to_status=after.status,
                created_at=now,
            )
        )
