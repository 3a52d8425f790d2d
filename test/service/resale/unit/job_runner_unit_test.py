"""
Unit tests for the background job entry points

Test Coverage:
1. JobRunner dispatches each job name to its use case and returns a plain dict
2. JobScheduler.run_once survives a failing job
3. Webhook body parsing
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.platform.exception.exceptions import ValidationError
from src.service.resale.app.dto.job_result import (
    DispatchResult,
    ExpiredOrdersResult,
    HoldCheckResult,
    PaymentSyncResult,
)
from src.service.resale.driving_adapter.http_controller.webhook_controller import (
    parse_payment_id,
)
from src.service.resale.driving_adapter.job.job_runner import JobName, JobRunner
from src.service.resale.driving_adapter.job.job_scheduler import JobScheduler


def _container_returning(provider_name: str, result) -> MagicMock:
    container = MagicMock()
    use_case = MagicMock()
    use_case.execute = AsyncMock(return_value=result)
    getattr(container, provider_name).return_value = use_case
    return container


class TestJobRunner:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'job,provider_name,result',
        [
            (
                JobName.EXPIRE_ORDERS,
                'process_expired_orders_use_case',
                ExpiredOrdersResult(processed_count=0, order_ids=[]),
            ),
            (
                JobName.SYNC_PAYMENTS,
                'process_payment_sync_use_case',
                PaymentSyncResult(synced=3, failed=1, orders_expired=0),
            ),
            (
                JobName.CHECK_HOLD_PERIODS,
                'check_hold_periods_use_case',
                HoldCheckResult(released=2, retained=1),
            ),
            (
                JobName.DISPATCH_NOTIFICATIONS,
                'dispatch_pending_notifications_use_case',
                DispatchResult(sent=5, failed=0),
            ),
        ],
    )
    async def test_each_job_runs_its_use_case(self, job, provider_name, result):
        # Arrange
        container = _container_returning(provider_name, result)

        # Act
        output = await JobRunner(container=container).run(job)

        # Assert
        getattr(container, provider_name).return_value.execute.assert_awaited_once()
        assert output == result.to_dict()

    @pytest.mark.asyncio
    async def test_failure_propagates(self):
        container = MagicMock()
        container.check_hold_periods_use_case.return_value.execute = AsyncMock(
            side_effect=RuntimeError('db down')
        )

        with pytest.raises(RuntimeError, match='db down'):
            await JobRunner(container=container).run(JobName.CHECK_HOLD_PERIODS)


class TestJobScheduler:
    @pytest.mark.asyncio
    async def test_run_once_reports_success(self):
        runner = MagicMock()
        runner.run = AsyncMock(return_value={'sent': 0, 'failed': 0})
        scheduler = JobScheduler(runner=runner, intervals={JobName.DISPATCH_NOTIFICATIONS: 5})

        assert await scheduler.run_once(JobName.DISPATCH_NOTIFICATIONS) is True

    @pytest.mark.asyncio
    async def test_run_once_swallows_failure(self):
        """
        Given: A job that raises
        When: The scheduler runs it
        Then: False is returned and the loop can carry on
        """
        runner = MagicMock()
        runner.run = AsyncMock(side_effect=RuntimeError('provider timeout'))
        scheduler = JobScheduler(runner=runner, intervals={JobName.SYNC_PAYMENTS: 60})

        assert await scheduler.run_once(JobName.SYNC_PAYMENTS) is False
        runner.run.assert_awaited_once_with(JobName.SYNC_PAYMENTS)


class TestParsePaymentId:
    def test_payment_id_is_extracted(self):
        assert parse_payment_id(b'{"payment_id": "DP-42", "status": "PAID"}') == 'DP-42'

    @pytest.mark.parametrize(
        'body', [b'not json', b'[]', b'{}', b'{"payment_id": ""}'], ids=['invalid', 'list', 'empty', 'blank']
    )
    def test_malformed_body_is_rejected(self, body):
        with pytest.raises(ValidationError):
            parse_payment_id(body)
