"""
Unit tests for the Logger.io helpers

Tests:
- Secret masking in repr() output and keyword arguments
- Argument normalisation against the wrapped signature
- Correlation prefix and access-log level mapping
- Logger.io reraise behaviour
"""

import pytest

from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger, correlation_prefix
from src.platform.logging.loguru_io_config import access_log_level
from src.platform.logging.loguru_io_utils import (
    MASK,
    mask_sensitive,
    normalize_args_kwargs,
    should_mask_keyword,
    truncate_content,
)


class TestMasking:
    def test_secret_in_repr_is_masked(self):
        assert (
            mask_sensitive("Credentials(api_key='abc123', base_url='https://dlocal')")
            == f"Credentials(api_key='{MASK}', base_url='https://dlocal')"
        )

    def test_plain_value_is_returned_untouched(self):
        value = {'order_id': 1}

        assert mask_sensitive(value) is value

    @pytest.mark.parametrize('keyword', ['X-Job-Token', 'authorization', 'DLOCAL_SECRET_KEY'])
    def test_sensitive_keyword(self, keyword):
        assert should_mask_keyword(keyword, 'value') == MASK

    def test_other_keyword(self):
        assert should_mask_keyword('buyer_user_id', 'user-1') == 'user-1'

    def test_long_content_is_truncated(self):
        result = truncate_content('x' * 1200)

        assert result.startswith('x' * 1000)
        assert result.endswith('(truncated 200 chars)')


class TestNormalizeArgsKwargs:
    def test_unknown_kwargs_and_extra_args_are_dropped(self):
        def reserve(uow, *, quantity):
            return uow, quantity

        args, kwargs = normalize_args_kwargs(reserve, 'uow', 'extra', quantity=2, retry=True)

        assert args == ('uow',)
        assert kwargs == {'quantity': 2}

    def test_var_kwargs_keep_everything(self):
        def publish(*args, **kwargs):
            return args, kwargs

        args, kwargs = normalize_args_kwargs(publish, 1, 2, a=3)

        assert args == (1, 2)
        assert kwargs == {'a': 3}


class TestCorrelationPrefix:
    def test_known_ids_are_listed_in_order(self):
        prefix = correlation_prefix({'payment_id': 'p1', 'now': None, 'order_id': 'o1'})

        assert prefix == '[order_id=o1 payment_id=p1] '

    def test_no_ids(self):
        assert correlation_prefix({'batch_size': 100}) == ''


class TestAccessLogLevel:
    @pytest.mark.parametrize(
        'line,level',
        [
            ('127.0.0.1:52764 - "POST /api/orders HTTP/1.1" 201', 'INFO'),
            ('[2026-03-01] 10.0.0.4 - "POST /api/orders HTTP/1.1" 409 3.1', 'WARNING'),
            ('127.0.0.1:52764 - "POST /api/webhooks/dlocal HTTP/1.1" 500', 'ERROR'),
            ('Application startup complete.', None),
        ],
    )
    def test_level_follows_status(self, line, level):
        assert access_log_level(line) == level


class TestLoggerIo:
    @pytest.mark.asyncio
    async def test_async_return_value_passes_through(self):
        @Logger.io
        async def total(*, subtotal: int, fee: int) -> int:
            return subtotal + fee

        assert await total(subtotal=2400, fee=175) == 2575

    def test_reraise_false_returns_none(self):
        @Logger.io(reraise=False)
        def conflict() -> None:
            raise ConflictError('Tickets no longer available')

        assert conflict() is None

    def test_error_is_reraised_by_default(self):
        @Logger.io
        def conflict() -> None:
            raise ConflictError('Tickets no longer available')

        with pytest.raises(ConflictError):
            conflict()
