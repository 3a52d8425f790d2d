"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from datetime import timedelta

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.service.resale.app.command.cancel_listing_use_case import CancelListingUseCase
from src.service.resale.app.command.cancel_order_use_case import CancelOrderUseCase
from src.service.resale.app.command.check_hold_periods_use_case import CheckHoldPeriodsUseCase
from src.service.resale.app.command.create_listing_use_case import CreateListingUseCase
from src.service.resale.app.command.create_order_use_case import CreateOrderUseCase
from src.service.resale.app.command.create_payment_link_use_case import (
    CreatePaymentLinkUseCase,
)
from src.service.resale.app.command.dispatch_pending_notifications_use_case import (
    DispatchPendingNotificationsUseCase,
)
from src.service.resale.app.command.expire_order_use_case import ExpireOrderUseCase
from src.service.resale.app.command.fail_payout_use_case import FailPayoutUseCase
from src.service.resale.app.command.order_state_machine import OrderStateMachine
from src.service.resale.app.command.process_expired_orders_use_case import (
    ProcessExpiredOrdersUseCase,
)
from src.service.resale.app.command.process_payment_sync_use_case import (
    ProcessPaymentSyncUseCase,
)
from src.service.resale.app.command.process_provider_event_use_case import (
    ProcessProviderEventUseCase,
)
from src.service.resale.app.command.request_payout_use_case import RequestPayoutUseCase
from src.service.resale.app.command.ticket_allocator import TicketAllocator
from src.service.resale.app.query.get_order_use_case import GetOrderUseCase
from src.service.resale.app.query.get_seller_balance_use_case import GetSellerBalanceUseCase
from src.service.resale.domain.value_object.marketplace_config import MarketplaceConfig
from src.service.resale.driven_adapter.dispute.no_dispute_checker import NoDisputeChecker
from src.service.resale.driven_adapter.notification.db_notification_publisher import (
    DbNotificationPublisher,
)
from src.service.resale.driven_adapter.notification.logging_notification_channel import (
    LoggingNotificationChannel,
)
from src.service.resale.driven_adapter.payment_provider.dlocal_payment_provider import (
    DLocalPaymentProvider,
)
from src.service.resale.driven_adapter.payment_provider.payment_provider_factory import (
    PaymentProviderFactory,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)
    marketplace_config = providers.Singleton(MarketplaceConfig.from_settings, config_service)

    # Database (uses AsyncEngineManager with settings from config_service)
    database = providers.Singleton(Database, read_only=False)

    # One unit of work per transaction; use cases receive the factory, not a unit
    uow_factory = providers.Factory(SqlAlchemyUnitOfWork, session_factory=database.provided.session)

    # Payment providers
    dlocal_payment_provider = providers.Singleton(
        DLocalPaymentProvider,
        base_url=config_service.provided.DLOCAL_BASE_URL,
        api_key=config_service.provided.DLOCAL_API_KEY,
        secret_key=config_service.provided.DLOCAL_SECRET_KEY.get_secret_value.call(),
        timeout_seconds=config_service.provided.PAYMENT_PROVIDER_TIMEOUT_SECONDS,
    )
    payment_provider_factory = providers.Singleton(
        PaymentProviderFactory,
        providers=providers.List(dlocal_payment_provider),
    )

    # Ports with a single in-process implementation
    dispute_checker = providers.Singleton(NoDisputeChecker)
    notification_channel = providers.Singleton(LoggingNotificationChannel)
    notification_publisher = providers.Singleton(
        DbNotificationPublisher, uow_factory=uow_factory.provider
    )

    # Domain services (stateless)
    ticket_allocator = providers.Singleton(TicketAllocator, config=marketplace_config)
    order_state_machine = providers.Singleton(OrderStateMachine, config=marketplace_config)

    # Listings
    create_listing_use_case = providers.Factory(
        CreateListingUseCase, uow_factory=uow_factory.provider, config=marketplace_config
    )
    cancel_listing_use_case = providers.Factory(
        CancelListingUseCase, uow_factory=uow_factory.provider
    )

    # Orders
    create_order_use_case = providers.Factory(
        CreateOrderUseCase,
        uow_factory=uow_factory.provider,
        allocator=ticket_allocator,
        config=marketplace_config,
    )
    cancel_order_use_case = providers.Factory(
        CancelOrderUseCase,
        uow_factory=uow_factory.provider,
        order_state_machine=order_state_machine,
    )
    get_order_use_case = providers.Factory(GetOrderUseCase, uow_factory=uow_factory.provider)
    expire_order_use_case = providers.Factory(
        ExpireOrderUseCase,
        uow_factory=uow_factory.provider,
        order_state_machine=order_state_machine,
        notification_publisher=notification_publisher,
    )

    # Payments
    create_payment_link_use_case = providers.Factory(
        CreatePaymentLinkUseCase,
        uow_factory=uow_factory.provider,
        provider_factory=payment_provider_factory,
        config=marketplace_config,
        notification_url=config_service.provided.PAYMENT_NOTIFICATION_URL,
        success_url=config_service.provided.PAYMENT_SUCCESS_URL,
        back_url=config_service.provided.PAYMENT_BACK_URL,
    )
    process_provider_event_use_case = providers.Factory(
        ProcessProviderEventUseCase,
        uow_factory=uow_factory.provider,
        provider_factory=payment_provider_factory,
        order_state_machine=order_state_machine,
        notification_publisher=notification_publisher,
    )

    # Jobs
    process_expired_orders_use_case = providers.Factory(
        ProcessExpiredOrdersUseCase,
        uow_factory=uow_factory.provider,
        reconciler=process_provider_event_use_case,
        expire_order=expire_order_use_case,
    )
    process_payment_sync_use_case = providers.Factory(
        ProcessPaymentSyncUseCase,
        uow_factory=uow_factory.provider,
        reconciler=process_provider_event_use_case,
        expire_order=expire_order_use_case,
        min_age=providers.Factory(
            timedelta, minutes=config_service.provided.PAYMENT_SYNC_MIN_AGE_MINUTES
        ),
        limit=config_service.provided.PAYMENT_SYNC_LIMIT,
        batch_size=config_service.provided.PAYMENT_SYNC_BATCH_SIZE,
    )
    check_hold_periods_use_case = providers.Factory(
        CheckHoldPeriodsUseCase,
        uow_factory=uow_factory.provider,
        dispute_checker=dispute_checker,
        batch_size=config_service.provided.HOLD_CHECK_BATCH_SIZE,
    )
    dispatch_pending_notifications_use_case = providers.Factory(
        DispatchPendingNotificationsUseCase,
        uow_factory=uow_factory.provider,
        channel=notification_channel,
        batch_size=config_service.provided.NOTIFICATION_DISPATCH_BATCH_SIZE,
        max_attempts=config_service.provided.NOTIFICATION_MAX_ATTEMPTS,
    )

    # Earnings and payouts
    get_seller_balance_use_case = providers.Factory(
        GetSellerBalanceUseCase, uow_factory=uow_factory.provider
    )
    request_payout_use_case = providers.Factory(
        RequestPayoutUseCase, uow_factory=uow_factory.provider, config=marketplace_config
    )
    fail_payout_use_case = providers.Factory(
        FailPayoutUseCase,
        uow_factory=uow_factory.provider,
        notification_publisher=notification_publisher,
    )


container = Container()


def setup() -> None:
    container.config_service()
    container.marketplace_config()


def cleanup() -> None:
    container.reset_singletons()
