from contextvars import ContextVar
from datetime import datetime, timezone
from enum import StrEnum
import logging
import os
import re
import sys
from typing import TYPE_CHECKING

from loguru import logger as loguru_logger


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.constant.path import LOG_DIR
from src.platform.logging.service_context import get_service_context


LOG_DIR = os.environ.get('TEST_LOG_DIR', LOG_DIR)

# Keys whose values never reach a log line (matched lower-case, '-' read as '_')
SENSITIVE_KEYWORDS = {
    'password',
    'secret',
    'secret_key',
    'dlocal_secret_key',
    'api_key',
    'dlocal_api_key',
    'token',
    'job_trigger_token',
    'x_job_token',
    'authorization',
}

chain_start_time_var: ContextVar[float] = ContextVar('chain_start_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    CHAIN_START_TIME = 'chain_start_time'
    CALL_TARGET = 'call_target'


# Minimum level per third-party logger routed through InterceptHandler
NOISY_LOGGERS: dict[str, int] = {
    'httpcore': logging.WARNING,
    'hpack': logging.WARNING,
    'asyncio': logging.WARNING,
    'sqlalchemy.engine': logging.WARNING,
}

# granian and uvicorn access lines: ... "POST /api/orders HTTP/1.1" 409 ...
_ACCESS_STATUS_PATTERN = re.compile(r'"[A-Z]+ \S+ HTTP/[\d.]+" (\d{3})')


def access_log_level(message: str) -> str | None:
    """Level for an access log line by response status; None for any other line"""
    if not (match := _ACCESS_STATUS_PATTERN.search(message)):
        return None
    status_code = int(match.group(1))
    if status_code >= 500:
        return 'ERROR'
    # 409 on sold-out inventory and 401 on unsigned webhooks are routine
    if status_code >= 400:
        return 'WARNING'
    return 'INFO'


def _default_extra() -> dict[str, str]:
    return {
        ExtraField.SERVICE_CONTEXT: get_service_context(),
        ExtraField.CHAIN_START_TIME: '',
        ExtraField.CALL_TARGET: '',
    }


class InterceptHandler(logging.Handler):
    """Route stdlib logging (granian, httpx, alembic, sqlalchemy) into loguru"""

    def __init__(self) -> None:
        super().__init__()
        self._bound = loguru_logger.bind(**_default_extra())

    def emit(self, record: logging.LogRecord) -> None:
        for prefix, minimum in NOISY_LOGGERS.items():
            if record.name.startswith(prefix) and record.levelno < minimum:
                return

        message = record.getMessage()
        level: str | int | None = access_log_level(message)
        if level is None:
            try:
                level = loguru_logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        self._bound.opt(depth=depth, exception=record.exc_info).log(level, message)


io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        '<lvl>{level:<8}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        '{message}',
        '<lk>{elapsed}</>',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)


def _add_sinks(target: 'LoguruLogger') -> None:
    level = 'DEBUG' if settings.DEBUG else 'INFO'

    if settings.LOG_JSON:
        target.add(sys.stdout, serialize=True, level=level, enqueue=True)
    else:
        target.add(sys.stdout, format=io_log_format, level=level, enqueue=True)

    # Hourly files only while debugging; deployed replicas ship stdout
    if settings.DEBUG:
        hour = datetime.now(timezone.utc).strftime('%Y-%m-%d_%H')
        prefix = 'test_' if os.environ.get('TEST_LOG_DIR') else ''
        target.add(
            f'{LOG_DIR}/{prefix}{hour}.log',
            format=io_log_format,
            rotation='1 hour',
            retention='7 days',
            compression='gz',
            enqueue=True,
            level=level,
        )


loguru_logger.remove()
custom_logger = loguru_logger.bind(**_default_extra())
_add_sinks(custom_logger)

logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
