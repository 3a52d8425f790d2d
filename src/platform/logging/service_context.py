"""
Service context for log lines.

API replicas, the job CLI and cron-triggered runs all ship to one collector;
``resale-marketplace@production:api-7f9c:12`` says which process wrote a line.
"""

from functools import lru_cache
import os
import socket

from src.platform.config.core_setting import settings


@lru_cache(maxsize=1)
def get_service_context() -> str:
    host = os.getenv('HOSTNAME') or socket.gethostname() or 'local'
    return f'{settings.SERVICE_NAME}@{settings.ENVIRONMENT}:{host[:12]}:{os.getpid()}'
